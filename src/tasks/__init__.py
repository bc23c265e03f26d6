"""Package tasks declared in ``tasks.xml``."""

from .model import CopyArtifact, CopyPath, DeletePath, FileFilter, PackageTasks, XslTransform
from .parser import load_tasks, parse_tasks
from .properties import replace_properties
from .runner import TaskRunner

__all__ = [
    "CopyArtifact",
    "CopyPath",
    "DeletePath",
    "FileFilter",
    "PackageTasks",
    "TaskRunner",
    "XslTransform",
    "load_tasks",
    "parse_tasks",
    "replace_properties",
]
