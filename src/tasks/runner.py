"""Execution of package tasks against the staged directory."""

from __future__ import annotations

import logging
import os
import zipfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from lxml import etree

from common.errors import TaskError
from common.io_utils import copy_file, extract_zip, recursive_delete
from common.logging_utils import extra_context, is_debug_enabled
from constants import Layout, Phase
from installer.strategies import ArtifactInstaller
from modules.schemas import SchemaExtractor
from versioning.expressions import to_artifact_coords
from versioning.properties import VersionProperties
from .model import CopyArtifact, CopyPath, DeletePath, FileFilter, PackageTasks, Task, XslTransform
from .properties import copy_with_properties

logger = logging.getLogger(__name__)

Deferred = Tuple[Task, Any]


def convert_line_endings(path: Path, windows: bool) -> None:
    """Rewrite ``path`` so every line ends with the platform terminator."""
    eol = "\r\n" if windows else "\n"
    with open(path, encoding="utf-8", newline="") as fh:
        lines = fh.read().splitlines()
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.writelines(line + eol for line in lines)


class TaskRunner:
    """Runs the tasks of a package.

    ``package`` arguments are ``provisioning.feature_pack.Package`` objects;
    copy-path sources are resolved against the package ``content`` directory
    or the feature-pack ``resources`` directory.
    """

    def __init__(
        self,
        installer: ArtifactInstaller,
        versions: VersionProperties,
        task_props: Mapping[str, str],
        staged_dir: Path,
        schemas: Optional[SchemaExtractor] = None,
        fp_task_props: Optional[Mapping[str, Mapping[str, str]]] = None,
    ):
        self.installer = installer
        self.versions = versions
        self.task_props = task_props
        self.staged_dir = Path(staged_dir)
        self.schemas = schemas
        self.fp_task_props = fp_task_props or {}
        self._stylesheets: Dict[Path, etree.XSLT] = {}
        self._handlers: Dict[Type, Callable] = {
            CopyArtifact: self.copy_artifact,
            CopyPath: self.copy_path,
            DeletePath: self.delete_path,
            XslTransform: self.xsl_transform,
        }

    def process_package(self, package, tasks: PackageTasks) -> List[Deferred]:
        """Run processing-phase tasks, mkdirs and line endings.

        Returns the finalizing tasks of the package, to be run later with
        ``execute``.
        """
        deferred: List[Deferred] = []
        for task in tasks.tasks:
            if task.phase is Phase.PROCESSING:
                self.execute(task, package)
            else:
                deferred.append((task, package))
        self.mkdirs(tasks.mkdirs)
        self.change_line_endings(tasks.unix_line_endings, tasks.windows_line_endings)
        return deferred

    def execute(self, task: Task, package) -> None:
        handler = self._handlers.get(type(task))
        if handler is None:
            raise TaskError(f"Unsupported task {task!r}")
        if is_debug_enabled(logger):
            logger.debug(
                "Executing package task",
                extra=extra_context(event="task", component="runner", action=type(task).__name__,
                                    package=getattr(package, "name", None)),
            )
        handler(task, package)

    def copy_artifact(self, task: CopyArtifact, package) -> None:
        if task.feature_pack_version:
            props = self.versions.for_feature_pack(package.feature_pack.name)
        else:
            props = self.versions.merged
        coordinate = to_artifact_coords(props, task.artifact, task.optional)
        if coordinate is None:
            logger.debug("Skipping optional artifact %s", task.artifact)
            return
        resolved = self.installer.resolve(coordinate)
        source = self.installer.install_copied(resolved)
        location = task.to_location
        if location.endswith("/"):
            location += source.name
        target = self.staged_dir / location
        logger.debug("Copying artifact %s to %s", source, target)
        try:
            if task.extract:
                if not zipfile.is_zipfile(source):
                    raise TaskError(f"Cannot extract {source}: not an archive")
                target.mkdir(parents=True, exist_ok=True)
                extract_zip(source, target, includes=task.includes, excludes=task.excludes)
            else:
                copy_file(source, target)
            if self.schemas is not None:
                self.schemas.process(resolved.group_id, source)
        except OSError as exc:
            raise TaskError(f"Failed to copy artifact {resolved}: {exc}") from exc

    def copy_path(self, task: CopyPath, package) -> None:
        if task.relative_to == Layout.RESOURCES:
            base = package.feature_pack.resources_dir
        elif task.relative_to == Layout.CONTENT:
            base = package.content_dir
        else:
            raise TaskError(f"Unsupported relative-to value {task.relative_to}")
        src = base / task.src
        if not src.exists():
            raise TaskError(f"Path {src} does not exist")
        if task.target is not None:
            target = self.staged_dir / task.target
        elif src.is_dir():
            target = self.staged_dir
        else:
            target = self.staged_dir / src.name
        try:
            if src.is_dir():
                self._copy_dir(src, target, task.replace_props)
            elif task.replace_props:
                copy_with_properties(src, target, self.task_props)
            else:
                copy_file(src, target)
        except OSError as exc:
            raise TaskError(f"Failed to copy {src} to {target}: {exc}") from exc

    def _copy_dir(self, src: Path, target: Path, replace_props: bool) -> None:
        for dirpath, _, filenames in os.walk(src, followlinks=True):
            relative = Path(dirpath).relative_to(src)
            (target / relative).mkdir(parents=True, exist_ok=True)
            for filename in filenames:
                source_file = Path(dirpath, filename)
                target_file = target / relative / filename
                if replace_props:
                    copy_with_properties(source_file, target_file, self.task_props)
                else:
                    copy_file(source_file, target_file)

    def delete_path(self, task: DeletePath, package=None) -> None:
        path = self.staged_dir / task.path
        if not path.exists():
            return
        try:
            if task.recursive:
                recursive_delete(path)
                return
            if task.if_empty:
                if not path.is_dir():
                    raise TaskError(f"{path} is not a directory")
                if any(path.iterdir()):
                    return
            if path.is_dir():
                path.rmdir()
            else:
                path.unlink()
        except OSError as exc:
            raise TaskError(f"Failed to delete {path}: {exc}") from exc

    def _stylesheet(self, path: Path) -> etree.XSLT:
        xslt = self._stylesheets.get(path)
        if xslt is None:
            xslt = etree.XSLT(etree.parse(str(path)))
            self._stylesheets[path] = xslt
        return xslt

    def xsl_transform(self, task: XslTransform, package) -> None:
        src = self.staged_dir / task.src
        if not src.exists():
            raise TaskError(f"Path {src} does not exist")
        output = self.staged_dir / task.output
        if output.exists():
            raise TaskError(f"Path {output} already exists")
        stylesheet = self.staged_dir / task.stylesheet
        if task.feature_pack_properties:
            props = self.fp_task_props.get(package.feature_pack.name, {})
        else:
            props = self.task_props
        params = {name: etree.XSLT.strparam(value) for name, value in task.params.items()}
        # task properties win over stylesheet params of the same name
        params.update((name, etree.XSLT.strparam(value)) for name, value in props.items())
        try:
            result = self._stylesheet(stylesheet)(etree.parse(str(src)), **params)
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(bytes(result))
        except (etree.LxmlError, OSError) as exc:
            raise TaskError(f"Failed to transform {src} with {stylesheet} to {output}") from exc

    def mkdirs(self, names: List[str]) -> None:
        for name in names:
            try:
                (self.staged_dir / name).mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise TaskError(f"Failed to create directory {self.staged_dir / name}") from exc

    def change_line_endings(self, unix: List[FileFilter], windows: List[FileFilter]) -> None:
        if not unix and not windows:
            return
        for dirpath, _, filenames in os.walk(self.staged_dir):
            for filename in filenames:
                path = Path(dirpath, filename)
                relative = path.relative_to(self.staged_dir).as_posix()
                try:
                    if any(f.matches(relative) for f in unix):
                        convert_line_endings(path, windows=False)
                    if any(f.matches(relative) for f in windows):
                        convert_line_endings(path, windows=True)
                except (OSError, UnicodeDecodeError) as exc:
                    raise TaskError(f"Failed to convert line endings of {path}: {exc}") from exc
