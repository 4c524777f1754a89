"""Checks applied to newly selected files before a batch is stored."""

import os
from typing import List, Sequence

from file_archive.core.result import Result
from file_archive.services.payload import FilePayload


def parse_file_types(file_types: str) -> List[str]:
    """``".JPG, .png"`` -> ``[".jpg", ".png"]``. Empty means all types are accepted."""
    return [t.strip().lower() for t in file_types.split(",") if t.strip()]


class UploadPolicy:
    """Accepted extensions, max size and max number of files per parent key."""

    def __init__(self, max_file_size: int, accepted_file_types: str = "", max_files: int = 0):
        if max_file_size <= 0:
            raise ValueError("max_file_size is 0 or less")
        if max_files < 0:
            raise ValueError("max_files is negative")
        self.max_file_size = max_file_size
        self.accepted_file_types = parse_file_types(accepted_file_types)
        self.max_files = max_files

    def check(self, new_files: Sequence[FilePayload], existing_count: int = 0) -> Result[None]:
        """Report every offending file at once, or succeed."""
        messages = []
        if self.accepted_file_types:
            for f in new_files:
                ext = os.path.splitext(f.name)[1].lower()
                if ext not in self.accepted_file_types:
                    messages.append(
                        f"The file '{f.name}' is not of an allowed file type. "
                        f"Allowed types are: {', '.join(self.accepted_file_types)}."
                    )
        for f in new_files:
            if f.size is not None and f.size > self.max_file_size:
                messages.append(
                    f"The file '{f.name}' is too large. The max file size is {self.max_file_size} bytes."
                )
        if self.max_files and existing_count + len(new_files) > self.max_files:
            messages.append(
                f"You have selected too many files. There can be a max of {self.max_files} files in the archive."
            )

        if messages:
            messages.append("The upload is aborted. Please reselect files and try again.")
            return Result.failure_bad_request(messages)
        return Result.success()
