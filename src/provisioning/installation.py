"""Installation orchestrator.

Assembles the staged directory from an ordered list of feature packs:

1. feature-pack resources are loaded and overrides validated;
2. the installer strategy is selected (configuration conflicts fail here,
   before any artifact is resolved);
3. packages are processed: content copied, module resources copied, module
   templates discovered, processing-phase tasks run;
4. every artifact referenced by a module template is resolved in one batch;
5. templates are rewritten for a thin or fat server;
6. layers.conf files are merged, post-install hooks and finalizing tasks
   run, and the installation cache is persisted.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from artifacts.batch import BatchResolver
from artifacts.cache import InstallationCache
from artifacts.coordinate import Coordinate
from common.errors import ArtifactNotFoundError, ProvisioningError, TemplateProcessingError
from common.io_utils import copy_file, copy_tree, recursive_delete
from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants, Layout
from installer.factory import create_installer
from installer.strategies import ArtifactInstaller
from installer.transformer import CommandTransformer, Transformer
from modules.processor import FatModuleTemplateProcessor, ThinModuleTemplateProcessor
from modules.schemas import SchemaExtractor
from modules.template import ModuleTemplate
from registry.base import ArtifactRepository
from tasks.parser import load_tasks
from tasks.runner import Deferred, TaskRunner
from versioning.properties import VersionProperties, parse_overrides
from .feature_pack import FeaturePack, Package
from .hooks import Hooks
from .layers import process_layers
from .options import InstallOptions

logger = logging.getLogger(__name__)


@dataclass
class InstallationReport:
    """Summary of a finished run."""

    feature_packs: int
    packages: int
    module_templates: int
    preloaded_artifacts: int
    cached_artifacts: int
    duration_ms: int


class Installation:
    """One installation run over an ordered list of feature packs."""

    def __init__(
        self,
        feature_packs: Sequence[FeaturePack],
        staged_dir: Path,
        options: InstallOptions,
        repository: ArtifactRepository,
        transformer: Optional[Transformer] = None,
        hooks: Optional[Hooks] = None,
    ):
        self.feature_packs = list(feature_packs)
        self.staged_dir = Path(staged_dir)
        self.options = options
        self.repository = repository
        self.transformer = transformer
        self.hooks = hooks or Hooks()

        self.versions = VersionProperties()
        self.task_props: Dict[str, str] = {}
        self.fp_task_props: Dict[str, Dict[str, str]] = {}
        self.excluded: Set[str] = set()
        self.schema_groups: Set[str] = set()
        self.cache = InstallationCache(self.staged_dir)
        self.batch = BatchResolver(repository)
        # relative module.xml path -> package providing it, last package wins
        self.modules: Dict[str, Package] = {}
        self._finalizing: List[Deferred] = []
        self._packages: List[Package] = []

    def run(self) -> InstallationReport:
        """Run the installation.

        Raises:
            ProvisioningError: On any failure; the staged directory is left as
                it was when the failure occurred.
        """
        self._check_not_running()
        with Timer() as timer:
            self.staged_dir.mkdir(parents=True, exist_ok=True)
            self._clear_output_repo()
            if self.cache.file.exists():
                self.cache.load()
            work_dir = Path(tempfile.mkdtemp(prefix="fpinstall-"))
            try:
                self._load_resources()
                installer = self._create_installer(work_dir)
                schemas = SchemaExtractor(self.schema_groups, self.staged_dir)
                runner = TaskRunner(installer, self.versions, self.task_props, self.staged_dir, schemas,
                                    self.fp_task_props)
                for feature_pack in self.feature_packs:
                    self._process_packages(feature_pack, runner)
                templates = self._load_templates()
                self._preload(templates, installer)
                for package, relative, template in templates:
                    self._process_template(package, relative, template, installer, schemas)
                process_layers(self._packages, self.staged_dir)
                self._run_hooks()
                for task, package in self._finalizing:
                    runner.execute(task, package)
                self.cache.write()
            finally:
                shutil.rmtree(work_dir, ignore_errors=True)
        report = InstallationReport(
            feature_packs=len(self.feature_packs),
            packages=len(self._packages),
            module_templates=len(self.modules),
            preloaded_artifacts=len(self.batch),
            cached_artifacts=len(self.cache),
            duration_ms=timer.duration_ms(),
        )
        logger.info(
            "Installed %d feature packs into %s in %d ms",
            report.feature_packs, self.staged_dir, report.duration_ms,
            extra=extra_context(event="install", component="installation", action="complete",
                                packages=report.packages, modules=report.module_templates),
        )
        return report

    def _check_not_running(self) -> None:
        for mode in Layout.SERVER_MODES:
            if (self.staged_dir / mode / Layout.TMP / Layout.STARTUP_MARKER).exists():
                raise ProvisioningError(f"The server appears to be running ({mode} mode).")

    def _clear_output_repo(self) -> None:
        output_repo = self.options.output_repo
        if output_repo is not None and Path(output_repo).exists():
            logger.info("Clearing output repository %s", output_repo)
            recursive_delete(Path(output_repo))

    def _load_resources(self) -> None:
        for feature_pack in self.feature_packs:
            if not feature_pack.exists():
                raise ProvisioningError(f"Feature pack {feature_pack.root} does not exist")
            self.versions.add_feature_pack(feature_pack.name, feature_pack.artifact_versions())
            task_props = feature_pack.task_properties()
            self.fp_task_props[feature_pack.name] = task_props
            self.task_props.update(task_props)
            self.excluded.update(feature_pack.transform_excludes())
            self.schema_groups.update(feature_pack.schema_groups())
        if self.options.overridden_artifacts:
            try:
                overrides = parse_overrides(self.options.overridden_artifacts)
            except ValueError as exc:
                raise ProvisioningError(f"Invalid overridden artifacts: {exc}") from exc
            self.versions.apply_overrides(overrides)

    def _create_installer(self, work_dir: Path) -> ArtifactInstaller:
        configs_dir = self.task_props.get(Constants.TRANSFORM_CONFIGS_DIR_KEY)
        if configs_dir and isinstance(self.transformer, CommandTransformer) \
                and self.transformer.configs_dir is None:
            self.transformer.configs_dir = Path(configs_dir)
        return create_installer(
            options=self.options,
            task_props=self.task_props,
            resolver=self.batch.resolve,
            versions=self.versions,
            cache=self.cache,
            work_dir=work_dir,
            transformer=self.transformer,
            excluded=self.excluded,
        )

    def _process_packages(self, feature_pack: FeaturePack, runner: TaskRunner) -> None:
        logger.info("Processing %s packages", feature_pack.name)
        for package in feature_pack.packages():
            self._packages.append(package)
            if package.content_dir.is_dir():
                copy_tree(package.content_dir, self.staged_dir)
            if not package.wildfly_dir.is_dir():
                continue
            if package.module_dir.is_dir():
                self._process_modules(package)
            if package.tasks_file.is_file():
                tasks = load_tasks(package.tasks_file)
                if tasks.has_tasks:
                    logger.debug("Processing %s package %s tasks", feature_pack.name, package.name)
                self._finalizing.extend(runner.process_package(package, tasks))

    def _process_modules(self, package: Package) -> None:
        """Copy module resources; register module templates for later."""
        module_dir = package.module_dir
        for dirpath, _, filenames in os.walk(module_dir):
            relative_dir = Path(dirpath).relative_to(module_dir)
            (self.staged_dir / relative_dir).mkdir(parents=True, exist_ok=True)
            for filename in filenames:
                relative = (relative_dir / filename).as_posix()
                if filename == Layout.MODULE_XML:
                    previous = self.modules.get(relative)
                    self.modules[relative] = package
                    if previous is not None and is_debug_enabled(logger):
                        logger.debug(
                            "Feature-pack %s package %s overrides module %s from feature-pack %s package %s",
                            package.feature_pack.name, package.name, relative,
                            previous.feature_pack.name, previous.name,
                        )
                else:
                    copy_file(Path(dirpath, filename), self.staged_dir / relative)

    @staticmethod
    def _failure(package: Package, relative: str) -> TemplateProcessingError:
        return TemplateProcessingError(package.feature_pack.name, package.name, relative)

    def _load_templates(self) -> List[Tuple[Package, str, ModuleTemplate]]:
        templates = []
        for relative, package in self.modules.items():
            try:
                template = ModuleTemplate(package.module_dir / relative, self.staged_dir / relative)
            except (ET.ParseError, OSError) as exc:
                raise self._failure(package, relative) from exc
            templates.append((package, relative, template))
        return templates

    def _preload(self, templates: List[Tuple[Package, str, ModuleTemplate]], installer: ArtifactInstaller) -> None:
        coordinates = []
        # first template referencing each coordinate
        origins: Dict[Coordinate, Tuple[Package, str]] = {}
        for package, relative, template in templates:
            props = self.versions.for_feature_pack(package.feature_pack.name)
            try:
                for ref in template.references(props, installer):
                    coordinate = ref.unresolved_coordinate()
                    if coordinate is not None and not installer.is_local(coordinate):
                        coordinates.append(coordinate)
                        origins.setdefault(coordinate, (package, relative))
            except (ProvisioningError, ValueError) as exc:
                raise self._failure(package, relative) from exc
        logger.info("Preloading %d module artifacts", len(coordinates))
        with Timer() as timer:
            try:
                self.batch.preload(coordinates)
            except ArtifactNotFoundError as exc:
                origin = origins.get(exc.coordinate)
                if origin is None:
                    raise
                raise self._failure(*origin) from exc
        logger.debug("Finished preloading artifacts in %d ms", timer.duration_ms())

    def _process_template(self, package: Package, relative: str, template: ModuleTemplate,
                          installer: ArtifactInstaller, schemas: SchemaExtractor) -> None:
        try:
            if not template.is_module:
                copy_file(template.source, template.target)
                return
            props = self.versions.for_feature_pack(package.feature_pack.name)
            if self.options.thin:
                processor = ThinModuleTemplateProcessor(installer, template, props, schemas)
            else:
                processor = FatModuleTemplateProcessor(installer, template, props, schemas, self.hooks.indexer)
            processor.process()
            template.store()
        except (ProvisioningError, ValueError, OSError) as exc:
            raise self._failure(package, relative) from exc

    def _thin_local_repository(self) -> Optional[Path]:
        if not self.options.thin:
            return None
        if self.options.output_repo is not None:
            return Path(self.options.output_repo).absolute()
        if self.options.provisioning_repo is not None:
            return Path(self.options.provisioning_repo).absolute()
        return None

    def _run_hooks(self) -> None:
        self.hooks.generate_configs(self.staged_dir, self.options.thin, self._thin_local_repository())
        for feature_pack in self.feature_packs:
            script = feature_pack.finalize_script
            if script.is_file():
                logger.info("Running finalize script of %s", feature_pack.name)
                self.hooks.run_cli_script(self.staged_dir, script)
