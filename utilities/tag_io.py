#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Read and write TagRecords with mutagen.

Supports MP3 (ID3), FLAC (Vorbis comments), M4A/MP4 (iTunes atoms) and
falls back to mutagen's generic easy interface for other formats.
"""

import os
from pathlib import Path
from typing import List, Optional

import mutagen
from mutagen.easyid3 import EasyID3
from mutagen.flac import FLAC, Picture
from mutagen.id3 import APIC, COMM, ID3, ID3NoHeaderError
from mutagen.mp3 import MP3
from mutagen.mp4 import MP4, MP4Cover, MP4FreeForm

from tagger.record import TagRecord, parse_number


AUDIO_EXTENSIONS = {'.mp3', '.flac', '.m4a', '.mp4', '.ogg', '.opus', '.wma', '.wav'}

# Easy keys shared by EasyID3 and Vorbis comments
EASY_KEYS = {
    'title': 'title',
    'artist': 'artist',
    'album': 'album',
    'year': 'date',
    'track': 'tracknumber',
    'albumartist': 'albumartist',
    'genre': 'genre',
}

# Easy keys for the generic formats (Ogg, Opus, WMA, WAV), comment included
GENERIC_KEYS = dict(EASY_KEYS, comment='comment')

MP4_KEYS = {
    'title': '\xa9nam',
    'artist': '\xa9ART',
    'album': '\xa9alb',
    'year': '\xa9day',
    'albumartist': 'aART',
    'genre': '\xa9gen',
    'comment': '\xa9cmt',
}

MP4_RELEASE_ID = '----:com.apple.iTunes:MusicBrainz Album Id'


def log(message: str) -> None:
    print(f"[TagIO] {message}")


def _get_first(values) -> str:
    if not values:
        return ""
    value = values[0]
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return str(value)


def _safe_number(text: str) -> Optional[int]:
    try:
        return parse_number(text)
    except ValueError:
        # Dates such as "2022-05-01" keep the year
        year = text[:4]
        return int(year) if len(year) == 4 and year.isascii() and year.isdigit() else None


def _mime_type(data: bytes) -> str:
    if data[:8] == b'\x89PNG\r\n\x1a\n':
        return 'image/png'
    return 'image/jpeg'


# ==================== Reading ====================

def read_record(path: str) -> TagRecord:
    """
    Read one audio file into a TagRecord.

    Raises:
        mutagen.MutagenError, OSError: if the file can not be read
    """
    filepath = Path(path)
    record = TagRecord(
        filename=filepath.name,
        path=str(filepath),
        file_size=filepath.stat().st_size
    )

    ext = filepath.suffix.lower()
    if ext == '.mp3':
        _read_mp3(filepath, record)
    elif ext == '.flac':
        _read_flac(filepath, record)
    elif ext in ('.m4a', '.mp4'):
        _read_mp4(filepath, record)
    else:
        _read_generic(filepath, record)

    return record


def _read_easy(tags, record: TagRecord) -> None:
    for field, key in EASY_KEYS.items():
        text = _get_first(tags.get(key))
        if field in ('year', 'track'):
            setattr(record, field, _safe_number(text))
        else:
            setattr(record, field, text)
    record.release_id = _get_first(tags.get('musicbrainz_albumid'))


def _read_mp3(filepath: Path, record: TagRecord) -> None:
    audio = MP3(str(filepath))
    record.duration = int(audio.info.length) if audio.info else 0
    if audio.tags is None:
        return

    _read_easy(EasyID3(str(filepath)), record)

    for frame in audio.tags.getall('COMM'):
        if frame.text:
            record.comment = str(frame.text[0])
            break
    for frame in audio.tags.getall('APIC'):
        record.album_art = frame.data
        break


def _read_flac(filepath: Path, record: TagRecord) -> None:
    audio = FLAC(str(filepath))
    record.duration = int(audio.info.length) if audio.info else 0
    if audio.tags is not None:
        _read_easy(audio, record)
        record.comment = _get_first(audio.get('comment'))
    if audio.pictures:
        record.album_art = audio.pictures[0].data


def _read_mp4(filepath: Path, record: TagRecord) -> None:
    audio = MP4(str(filepath))
    record.duration = int(audio.info.length) if audio.info else 0
    if not audio.tags:
        return

    for field, key in MP4_KEYS.items():
        text = _get_first(audio.tags.get(key))
        setattr(record, field, _safe_number(text) if field == 'year' else text)

    # Track number is tuple (track, total)
    trkn = audio.tags.get('trkn', [(None, None)])[0]
    record.track = trkn[0] if isinstance(trkn, tuple) and trkn[0] else None

    record.release_id = _get_first(audio.tags.get(MP4_RELEASE_ID))

    covers = audio.tags.get('covr')
    if covers:
        record.album_art = bytes(covers[0])


def _read_generic(filepath: Path, record: TagRecord) -> None:
    audio = mutagen.File(str(filepath), easy=True)
    if audio is None:
        return
    record.duration = int(audio.info.length) if audio.info else 0
    if audio.tags is not None:
        _read_easy(audio, record)
        if 'comment' in audio:
            record.comment = _get_first(audio.get('comment'))


def scan_folder(folder: str, include_subfolders: bool = False) -> List[TagRecord]:
    """
    Read every audio file in a folder.

    Files that can not be read are still listed, with empty tags.

    Args:
        folder: Folder path
        include_subfolders: Recurse into subfolders

    Returns:
        Records sorted by path
    """
    path = Path(folder)
    pattern = '**/*' if include_subfolders else '*'
    files = sorted(
        item for item in path.glob(pattern)
        if item.is_file() and item.suffix.lower() in AUDIO_EXTENSIONS
    )

    records = []
    for filepath in files:
        try:
            records.append(read_record(str(filepath)))
        except (mutagen.MutagenError, OSError) as e:
            log(f"ERROR: Failed to read {filepath.name}: {e}")
            records.append(TagRecord(filename=filepath.name, path=str(filepath)))

    log(f"Loaded {len(records)} files from {folder}")
    return records


# ==================== Writing ====================

def write_record(record: TagRecord, preserve_mtime: bool = False) -> TagRecord:
    """
    Save a record's tags to its file, renaming it if the filename changed.

    Args:
        record: Record with path set
        preserve_mtime: Keep the file's modification time stamp

    Returns:
        The record with its path updated after a rename

    Raises:
        FileExistsError: if the new filename is taken
        mutagen.MutagenError, OSError: if the file can not be written
    """
    if not record.path:
        raise ValueError(f"Record has no path: {record.filename}")

    filepath = Path(record.path)
    stat = filepath.stat()

    if record.filename != filepath.name:
        new_path = filepath.with_name(record.filename)
        if new_path.exists():
            raise FileExistsError(f"Target exists: {record.filename}")
        os.rename(str(filepath), str(new_path))
        log(f"Renamed: {filepath.name} -> {new_path.name}")
        filepath = new_path
        record.path = str(new_path)

    ext = filepath.suffix.lower()
    if ext == '.mp3':
        _write_mp3(filepath, record)
    elif ext == '.flac':
        _write_flac(filepath, record)
    elif ext in ('.m4a', '.mp4'):
        _write_mp4(filepath, record)
    else:
        _write_generic(filepath, record)

    if preserve_mtime:
        os.utime(str(filepath), (stat.st_atime, stat.st_mtime))

    return record


def _write_easy(tags, record: TagRecord) -> None:
    for field, key in EASY_KEYS.items():
        text = record.field_text(field)
        if text:
            tags[key] = text
        elif key in tags:
            del tags[key]


def _write_mp3(filepath: Path, record: TagRecord) -> None:
    try:
        easy = EasyID3(str(filepath))
    except ID3NoHeaderError:
        easy = EasyID3()
    _write_easy(easy, record)
    easy.save(str(filepath))

    tags = ID3(str(filepath))
    tags.delall('COMM')
    if record.comment:
        tags.add(COMM(encoding=3, lang='eng', desc='', text=record.comment))
    tags.delall('APIC')
    if record.album_art:
        tags.add(
            APIC(
                encoding=3,  # UTF-8
                mime=_mime_type(record.album_art),
                type=3,  # Front cover
                desc='Cover',
                data=record.album_art
            )
        )
    tags.save(str(filepath))


def _write_flac(filepath: Path, record: TagRecord) -> None:
    audio = FLAC(str(filepath))
    _write_easy(audio, record)
    if record.comment:
        audio['comment'] = record.comment
    elif 'comment' in audio:
        del audio['comment']

    audio.clear_pictures()
    if record.album_art:
        picture = Picture()
        picture.type = 3  # Front cover
        picture.mime = _mime_type(record.album_art)
        picture.desc = 'Cover'
        picture.data = record.album_art
        audio.add_picture(picture)
    audio.save()


def _write_mp4(filepath: Path, record: TagRecord) -> None:
    audio = MP4(str(filepath))
    if audio.tags is None:
        audio.add_tags()

    for field, key in MP4_KEYS.items():
        text = record.field_text(field)
        if text:
            audio.tags[key] = [text]
        elif key in audio.tags:
            del audio.tags[key]

    if record.track:
        audio.tags['trkn'] = [(record.track, 0)]
    elif 'trkn' in audio.tags:
        del audio.tags['trkn']

    if record.release_id:
        audio.tags[MP4_RELEASE_ID] = [MP4FreeForm(record.release_id.encode('utf-8'))]

    if record.album_art:
        if _mime_type(record.album_art) == 'image/png':
            cover = MP4Cover(record.album_art, imageformat=MP4Cover.FORMAT_PNG)
        else:
            cover = MP4Cover(record.album_art, imageformat=MP4Cover.FORMAT_JPEG)
        audio.tags['covr'] = [cover]
    elif 'covr' in audio.tags:
        del audio.tags['covr']
    audio.save()


def _write_generic(filepath: Path, record: TagRecord) -> None:
    audio = mutagen.File(str(filepath), easy=True)
    if audio is None:
        raise mutagen.MutagenError(f"Unsupported file: {filepath.name}")
    if audio.tags is None:
        audio.add_tags()
    for field, key in GENERIC_KEYS.items():
        text = record.field_text(field)
        try:
            if text:
                audio[key] = text
            elif key in audio:
                del audio[key]
        except (KeyError, ValueError):
            log(f"{filepath.name}: '{key}' not supported by this format, not written")
    audio.save()


def remove_tags(path: str) -> None:
    """Delete the whole tag from a file"""
    audio = mutagen.File(str(path))
    if audio is not None and audio.tags is not None:
        audio.delete()
        log(f"Removed tags: {Path(path).name}")
