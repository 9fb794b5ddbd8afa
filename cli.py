#!/usr/bin/env python3
"""
Music Tagger CLI

Batch tag editing for a folder of music files.

Usage:
    python cli.py <command> <folder> [options]

Commands:
    show <folder>               Show the aggregated tags of the selection
    search <folder> <query>     Filter files (prefix with ! for advanced search)
    edit <folder>               Set tag fields on the selection
    filename-to-tag <folder>    Fill tags from filenames
    tag-to-filename <folder>    Rename files from tags
    musicbrainz <folder>        Download MusicBrainz release metadata
    acoustid <folder>           Look up fingerprints in AcoustID
    remove-tags <folder>        Delete tags from the selection

Advanced search:
    !prop1="value1";prop2="value2"
    Valid properties: filename, title, artist, album, year, track,
    albumartist, genre, comment. Year and track values must be numbers.
    Advanced search is case insensitive.

    !artist=""                  Files whose artist is empty
    !genre="";year="2022"       Files whose genre is empty and year is 2022
"""

import argparse
import sys
from pathlib import Path

from session import TaggerSession
from session.config import DEFAULT_CONFIG_PATH
from tagger import FORMAT_STRINGS, MIXED, TAG_FIELDS, ArtworkState
from tagger.record import format_duration, format_file_size


def open_session(args) -> TaggerSession:
    """Open the folder and select files (all files unless --files/--query)"""
    session = TaggerSession(args.config)
    session.open_folder(args.folder)

    if getattr(args, 'files', None):
        session.select(args.files)
    elif getattr(args, 'query', None):
        result = session.search(args.query)
        if not result.valid:
            raise ValueError(f"Invalid search: {args.query}")
        session.select_filenames(result.filenames)
    else:
        session.select_all()

    return session


def print_view(session: TaggerSession) -> None:
    if not session.selected:
        print("No files selected.")
        return

    view = session.view()
    print(f"\n=== {view.count} file(s) selected ===")
    for name, value in view.items():
        if value is MIXED:
            text = "<keep>"
        elif value is None:
            text = ""
        else:
            text = str(value)
        print(f"{name:>12}: {text}")
    print(f"{'duration':>12}: {format_duration(view.total_duration)}")
    print(f"{'file size':>12}: {format_file_size(view.total_file_size)}")
    art = view.artwork_state.value
    if view.artwork_state == ArtworkState.SINGLE and view.album_art:
        art = f"{art} ({len(view.album_art)} bytes)"
    print(f"{'album art':>12}: {art}")


def print_summary(title: str, results: dict) -> None:
    print(f"\n=== {title} ===")
    for key in ('total', 'success', 'saved', 'unchanged', 'skipped', 'failed'):
        value = results.get(key)
        if isinstance(value, int):
            print(f"{key.capitalize()}: {value}")
    for error in results.get('errors', []):
        print(f"  {error}")


def cmd_show(args):
    """Show the aggregated tags of the selection."""
    session = open_session(args)
    print_view(session)


def cmd_search(args):
    """Filter the folder by a search string."""
    session = TaggerSession(args.config)
    session.open_folder(args.folder)

    result = session.search(args.search)
    if not result.valid:
        print("Invalid advanced search (see --help for the syntax)", file=sys.stderr)
        return 1

    for filename in sorted(result.filenames):
        print(filename)
    print(f"\n{len(result.filenames)} of {len(session.records)} files match")
    return 0


def cmd_edit(args):
    """Set tag fields on the selection."""
    session = open_session(args)
    view = session.view()

    for assignment in args.set or []:
        if '=' not in assignment:
            raise ValueError(f"Expected field=value: {assignment}")
        name, value = assignment.split('=', 1)
        view[name.strip().lower()] = value

    if args.art:
        view.set_artwork(Path(args.art).read_bytes())
    elif args.remove_art:
        view.remove_artwork()

    print_summary("Saved Tags", session.apply(view))
    print_view(session)


def cmd_filename_to_tag(args):
    """Fill tags from filenames."""
    session = open_session(args)
    print_summary("Filename to Tag", session.filename_to_tag(args.format))


def cmd_tag_to_filename(args):
    """Rename files from tags."""
    session = open_session(args)
    print_summary("Tag to Filename", session.tag_to_filename(args.format))


def cmd_musicbrainz(args):
    """Download MusicBrainz release metadata."""
    session = open_session(args)
    if args.overwrite is not None:
        session.config.set('tags.overwrite_with_musicbrainz', args.overwrite)
    summary = session.download_musicbrainz()
    print_summary("MusicBrainz", summary)
    for item in summary['items']:
        print(f"  {item['filename']}: {item['status']}")


def cmd_acoustid(args):
    """Look up fingerprints in AcoustID."""
    session = open_session(args)
    summary = session.lookup_acoustid()
    print_summary("AcoustID", summary)
    for item in summary['items']:
        matches = len(item.get('results', []))
        suffix = f" ({matches} result(s))" if item['status'] == 'ok' else ""
        print(f"  {item['filename']}: {item['status']}{suffix}")


def cmd_remove_tags(args):
    """Delete tags from the selection."""
    session = open_session(args)
    removed = session.remove_tags()
    print(f"Removed tags from {removed} file(s)")


def add_selection_args(parser):
    parser.add_argument('folder', help='Music folder')
    parser.add_argument('--files', nargs='+', help='Filenames or paths relative to the folder (default: all)')
    parser.add_argument('--query', help='Select the files matching a search string')


def main():
    parser = argparse.ArgumentParser(
        prog='music-tagger',
        description='Music Tagger CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, help='Config file path')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # show command
    show_parser = subparsers.add_parser('show', help='Show aggregated tags')
    add_selection_args(show_parser)
    show_parser.set_defaults(func=cmd_show)

    # search command
    search_parser = subparsers.add_parser('search', help='Filter files by a search string')
    search_parser.add_argument('folder', help='Music folder')
    search_parser.add_argument('search', help='Search string (prefix with ! for advanced search)')
    search_parser.set_defaults(func=cmd_search)

    # edit command
    edit_parser = subparsers.add_parser('edit', help='Set tag fields')
    add_selection_args(edit_parser)
    edit_parser.add_argument('--set', action='append', metavar='FIELD=VALUE',
                             help=f"Field to set, one of: {', '.join(TAG_FIELDS)}")
    edit_parser.add_argument('--art', help='Image file to insert as album art')
    edit_parser.add_argument('--remove-art', action='store_true', help='Remove album art')
    edit_parser.set_defaults(func=cmd_edit)

    # filename-to-tag command
    ftt_parser = subparsers.add_parser('filename-to-tag', help='Fill tags from filenames')
    add_selection_args(ftt_parser)
    ftt_parser.add_argument('--format', default=FORMAT_STRINGS[0],
                            help=f"Format string (e.g. {', '.join(FORMAT_STRINGS)})")
    ftt_parser.set_defaults(func=cmd_filename_to_tag)

    # tag-to-filename command
    ttf_parser = subparsers.add_parser('tag-to-filename', help='Rename files from tags')
    add_selection_args(ttf_parser)
    ttf_parser.add_argument('--format', default=FORMAT_STRINGS[0],
                            help=f"Format string (e.g. {', '.join(FORMAT_STRINGS)})")
    ttf_parser.set_defaults(func=cmd_tag_to_filename)

    # musicbrainz command
    mb_parser = subparsers.add_parser('musicbrainz', help='Download MusicBrainz metadata')
    add_selection_args(mb_parser)
    mb_group = mb_parser.add_mutually_exclusive_group()
    mb_group.add_argument('--overwrite', dest='overwrite', action='store_true', default=None,
                          help='Overwrite filled-in fields')
    mb_group.add_argument('--fill-empty', dest='overwrite', action='store_false',
                          help='Only fill empty fields')
    mb_parser.set_defaults(func=cmd_musicbrainz)

    # acoustid command
    acoustid_parser = subparsers.add_parser('acoustid', help='Look up fingerprints in AcoustID')
    add_selection_args(acoustid_parser)
    acoustid_parser.set_defaults(func=cmd_acoustid)

    # remove-tags command
    remove_parser = subparsers.add_parser('remove-tags', help='Delete tags')
    add_selection_args(remove_parser)
    remove_parser.set_defaults(func=cmd_remove_tags)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 1

    try:
        return args.func(args) or 0
    except KeyboardInterrupt:
        print("\nOperation cancelled.")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
