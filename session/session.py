#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tagger session - programmatic interface over a music folder.

Drives the tag editing core the way a front end does:
    Open folder -> Select -> View / Edit -> Apply
    Search, filename <-> tag conversion, MusicBrainz / AcoustID enrichment

Usage:
    from session import TaggerSession

    session = TaggerSession('tagger-config.yaml')
    session.open_folder('/path/to/music/Album')
    session.select(['01 Intro.mp3', '02 Song.mp3'])
    view = session.view()
    view['genre'] = 'Jazz'
    session.apply(view)
"""

from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import mutagen

from sources import RequestsFetch
from tagger import (AggregatedTagView, SearchResult, TagRecord, aggregate,
                    apply_edits, download_musicbrainz_metadata,
                    filename_to_tag, lookup_fingerprints, search,
                    tag_to_filename)
from utilities.fingerprint import generate_fingerprint
from utilities.tag_io import read_record, remove_tags, scan_folder, write_record

from .config import ConfigManager, DEFAULT_CONFIG_PATH


class TaggerSession:
    """
    One open music folder and the current selection.
    """

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH, config: Optional[ConfigManager] = None, fetch=None):
        """
        Initialize session.

        Args:
            config_path: Path to configuration file
            config: Already loaded configuration (overrides config_path)
            fetch: HTTP transport for the resolvers
        """
        self.config = config or ConfigManager(config_path)
        self.fetch = fetch or RequestsFetch(timeout=self.config.http_timeout)
        self.folder: Optional[Path] = None
        self.records: List[TagRecord] = []
        self.selected: List[str] = []

        # Callbacks
        self._progress_callback: Optional[Callable] = None

    def set_progress_callback(self, callback: Callable[[str, int, int], None]) -> None:
        """
        Set progress callback for UI updates.

        Args:
            callback: Function(message, current, total)
        """
        self._progress_callback = callback

    def log(self, message: str) -> None:
        print(f"[Session] {message}")

    def log_error(self, message: str) -> None:
        print(f"[Session] ERROR: {message}")

    # ==================== Folder ====================

    def open_folder(self, folder: str) -> int:
        """
        Open a music folder and load its records.

        Returns:
            Number of files loaded
        """
        path = Path(folder)
        if not path.is_dir():
            raise NotADirectoryError(f"Folder not found: {folder}")

        self.folder = path
        if self.config.remember_last_opened_folder:
            self.config.set('library.last_opened_folder', str(path))
            self.config.save()
        return self.reload()

    def reload(self) -> int:
        """Re-read every file of the open folder; clears the selection"""
        if self.folder is None:
            return 0
        self.records = scan_folder(str(self.folder), self.config.include_subfolders)
        self.selected = []
        return len(self.records)

    def close_folder(self) -> None:
        self.folder = None
        self.records = []
        self.selected = []

    # ==================== Selection ====================

    def _key(self, record: TagRecord) -> str:
        """Records are identified by path; two subfolders may hold the same filename"""
        return record.path or record.filename

    def _relative_name(self, record: TagRecord) -> Optional[str]:
        if not record.path or self.folder is None:
            return None
        try:
            return Path(record.path).relative_to(self.folder).as_posix()
        except ValueError:
            return None

    def _resolve(self, name: str) -> TagRecord:
        for record in self.records:
            if name in (record.path, self._relative_name(record)):
                return record

        matches = [record for record in self.records if record.filename == name]
        if not matches:
            raise KeyError(name)
        if len(matches) > 1:
            raise ValueError(f"{name} exists in several subfolders; select it by its relative path")
        return matches[0]

    def select(self, names: Iterable[str]) -> List[TagRecord]:
        """
        Select records by filename, path relative to the folder, or full path.

        Raises:
            KeyError: for a name that is not in the folder
            ValueError: for a bare filename shared by files in different subfolders
        """
        self.selected = [self._key(self._resolve(name)) for name in names]
        return self.selected_records()

    def select_filenames(self, filenames: Iterable[str]) -> List[TagRecord]:
        """Select every record whose filename is listed (search results)"""
        wanted = set(filenames)
        self.selected = [self._key(record) for record in self.records if record.filename in wanted]
        return self.selected_records()

    def select_all(self) -> List[TagRecord]:
        self.selected = [self._key(record) for record in self.records]
        return self.selected_records()

    def selected_records(self) -> List[TagRecord]:
        wanted = set(self.selected)
        return [record for record in self.records if self._key(record) in wanted]

    def _swap(self, replaced: Dict[str, TagRecord]) -> None:
        """Put updated records (keyed by their previous key) into the folder and selection"""
        self.records = [replaced.get(self._key(record), record) for record in self.records]
        self.selected = [self._key(replaced[key]) if key in replaced else key for key in self.selected]

    def view(self) -> AggregatedTagView:
        """Aggregated view of the current selection"""
        return aggregate(self.selected_records())

    # ==================== Editing ====================

    def apply(self, view: AggregatedTagView) -> Dict[str, Any]:
        """
        Apply an edited view to the selection and save the files.

        Returns:
            Summary of saved/failed files
        """
        selection = self.selected_records()
        return self._save(apply_edits(view, selection), selection)

    def _save(self, updated: List[TagRecord], originals: List[TagRecord]) -> Dict[str, Any]:
        results = {
            'total': len(updated),
            'saved': 0,
            'unchanged': 0,
            'failed': 0,
            'errors': []
        }

        replaced = {}
        for original, record in zip(originals, updated):
            if record == original:
                results['unchanged'] += 1
                continue
            try:
                saved = write_record(record, preserve_mtime=self.config.preserve_modification_timestamp)
                replaced[self._key(original)] = saved
                results['saved'] += 1
            except (mutagen.MutagenError, OSError, ValueError) as e:
                results['failed'] += 1
                results['errors'].append(f"{original.filename}: {e}")
                self.log_error(f"Error saving {original.filename}: {e}")

        self._swap(replaced)
        return results

    def filename_to_tag(self, format_string: str) -> Dict[str, Any]:
        """Fill tags from filenames for the selection"""
        return self._convert(filename_to_tag, format_string)

    def tag_to_filename(self, format_string: str) -> Dict[str, Any]:
        """Rename the selected files from their tags"""
        return self._convert(tag_to_filename, format_string)

    def _convert(self, convert, format_string: str) -> Dict[str, Any]:
        selection = self.selected_records()
        updated = []
        skipped = 0
        for record in selection:
            converted = convert(record, format_string)
            if converted is None:
                skipped += 1
                updated.append(record)
            else:
                updated.append(converted)

        results = self._save(updated, selection)
        results['skipped'] = skipped
        self.log(f"Converted {results['saved']} of {len(selection)} files")
        return results

    def remove_tags(self) -> int:
        """Delete the tags of the selected files and re-read them"""
        removed = 0
        refreshed = {}
        for record in self.selected_records():
            try:
                remove_tags(record.path)
                refreshed[self._key(record)] = read_record(record.path)
                removed += 1
            except (mutagen.MutagenError, OSError) as e:
                self.log_error(f"Error removing tags from {record.filename}: {e}")
        self._swap(refreshed)
        return removed

    # ==================== Searching ====================

    def search(self, raw: str) -> SearchResult:
        """Filter the folder by a plain or advanced search string"""
        return search(raw, self.records)

    # ==================== Web Services ====================

    def download_musicbrainz(self) -> Dict[str, Any]:
        """
        Download MusicBrainz release metadata for the selection and save.

        Returns:
            Lookup summary with the save results under 'saved'
        """
        selection = self.selected_records()
        updated, summary = download_musicbrainz_metadata(
            selection,
            overwrite=self.config.overwrite_with_musicbrainz,
            user_agent=self.config.musicbrainz_user_agent,
            fetch=self.fetch,
            strict_artwork=self.config.strict_artwork,
            progress=self._progress_callback
        )
        summary['saved'] = self._save(updated, selection)
        return summary

    def fingerprint_selection(self) -> int:
        """Compute missing fingerprints for the selection with fpcalc"""
        fingerprinted = {}
        for record in self.selected_records():
            if record.fingerprint or not record.path:
                continue
            result = generate_fingerprint(record.path)
            if result:
                fingerprinted[self._key(record)] = replace(
                    record,
                    fingerprint=result['fingerprint'],
                    duration=record.duration or result['duration']
                )
        self._swap(fingerprinted)
        return len(fingerprinted)

    def lookup_acoustid(self) -> Dict[str, Any]:
        """Fingerprint the selection and look it up in AcoustID"""
        self.fingerprint_selection()
        return lookup_fingerprints(
            self.selected_records(),
            client_key=self.config.acoustid_client_key,
            fetch=self.fetch,
            progress=self._progress_callback
        )

    def __repr__(self) -> str:
        return f"TaggerSession(folder={self.folder}, files={len(self.records)}, selected={len(self.selected)})"
