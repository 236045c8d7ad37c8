"""
Simple Steps and a base class for Steps writing rendered artifacts.
"""
from __future__ import annotations

import contextlib
import shutil
from pathlib import Path

from .core import Step


class DirectCopyStep(Step):
    """
    A simple Step which copies a file byte-for-byte to its output paths,
    bypassing templating and transforms.
    """
    def __call__(self, path: Path, output_paths: list[Path]):
        for target_path in output_paths:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy(path, target_path)


class BaseStandardStep(Step):
    """
    A base class providing helper behaviors for typical steps rendering one
    artifact and copying it to any other output paths.
    """
    encoding = 'utf-8'
    newline = '\n'

    def ensure_output_dirs(self, output_paths: list[Path]):
        for o_path in output_paths:
            o_path.parent.mkdir(parents=True, exist_ok=True)

    def duplicate_output_paths(self, output_paths: list[Path]):
        for o_path in output_paths[1:]:
            shutil.copy(output_paths[0], o_path)

    @contextlib.contextmanager
    def ensure_outputs(self, output_paths: list[Path]):
        self.ensure_output_dirs(output_paths)
        yield
        self.duplicate_output_paths(output_paths)

    def write_artifact(self, content: str, output_paths: list[Path]):
        """
        Run @content through the configured transforms and write it out.
        """
        content = self.context.config.apply_transforms(content, output_paths[0])
        with self.ensure_outputs(output_paths):
            output_paths[0].write_text(content, self.encoding, newline=self.newline)
