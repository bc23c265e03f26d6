"""Tests for package task parsing and execution."""
import xml.etree.ElementTree as ET

import pytest

from artifacts.batch import BatchResolver
from artifacts.cache import InstallationCache
from common.errors import TaskError, UnresolvedVersionError
from constants import Phase
from installer.strategies import PassThroughInstaller
from modules.schemas import SchemaExtractor
from provisioning.feature_pack import FeaturePack
from tasks.model import CopyArtifact, CopyPath, DeletePath, XslTransform
from tasks.parser import parse_tasks
from tasks.properties import replace_properties
from tasks.runner import TaskRunner
from versioning.properties import VersionProperties

from conftest import make_jar

TASKS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<tasks xmlns="urn:wildfly:wildfly-feature-pack-tasks:3.1">
    <copy-artifact artifact="g:a" to-location="bin/client/" />
    <copy-artifact artifact="g:zip" to-location="docs/licenses" extract="true">
        <filter pattern="*.txt" include="true"/>
        <filter pattern="secret*" include="false"/>
    </copy-artifact>
    <copy-path src="bin/standalone.conf" relative-to="content" target="bin/standalone.conf" replace-props="true"/>
    <delete path="bin/tmp" recursive="true" phase="FINALIZING"/>
    <mkdirs>
        <dir name="standalone/tmp"/>
        <dir name="domain/data"/>
    </mkdirs>
    <line-endings>
        <unix><filter pattern="bin/*.sh" include="true"/></unix>
        <windows><filter pattern="bin/*.bat" include="true"/></windows>
    </line-endings>
    <unknown-task/>
</tasks>
"""

TRANSFORM_XML = """<tasks xmlns="urn:wildfly:wildfly-feature-pack-tasks:3.1">
    <transform stylesheet="docs/t.xsl" src="a.xml" output="b.xml" feature-pack-properties="true">
        <params>
            <param name="greeting" value="hi"/>
            <param name="mode" value="full"/>
        </params>
    </transform>
    <xsl-transform stylesheet="docs/t.xsl" src="b.xml" output="c.xml" phase="FINALIZING"/>
</tasks>
"""

STYLESHEET = """<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
    <xsl:output method="xml" omit-xml-declaration="yes"/>
    <xsl:param name="greeting" select="'none'"/>
    <xsl:param name="jboss.home" select="'none'"/>
    <xsl:param name="config.name" select="'none'"/>
    <xsl:template match="/server">
        <result name="{@name}" greeting="{$greeting}" home="{$jboss.home}" config="{$config.name}"/>
    </xsl:template>
</xsl:stylesheet>
"""


class TestParser:
    """``tasks.xml`` descriptors."""

    def test_parse(self):
        tasks = parse_tasks(ET.fromstring(TASKS_XML))
        assert [type(t) for t in tasks.tasks] == [CopyArtifact, CopyArtifact, CopyPath, DeletePath]
        copy, extract, path, delete = tasks.tasks
        assert copy.to_location == "bin/client/"
        assert extract.extract and extract.includes == ["*.txt"] and extract.excludes == ["secret*"]
        assert path.replace_props and path.relative_to == "content"
        assert delete.recursive and delete.phase is Phase.FINALIZING
        assert tasks.mkdirs == ["standalone/tmp", "domain/data"]
        assert [f.pattern for f in tasks.unix_line_endings] == ["bin/*.sh"]
        assert [f.pattern for f in tasks.windows_line_endings] == ["bin/*.bat"]

    def test_unknown_phase(self):
        with pytest.raises(TaskError):
            parse_tasks(ET.fromstring('<tasks><delete path="x" phase="LATER"/></tasks>'))

    def test_missing_attribute(self):
        with pytest.raises(TaskError):
            parse_tasks(ET.fromstring('<tasks><copy-artifact artifact="g:a"/></tasks>'))

    def test_parse_transform(self):
        tasks = parse_tasks(ET.fromstring(TRANSFORM_XML))
        assert [type(t) for t in tasks.tasks] == [XslTransform, XslTransform]
        first, second = tasks.tasks
        assert first.stylesheet == "docs/t.xsl"
        assert first.params == {"greeting": "hi", "mode": "full"}
        assert first.feature_pack_properties
        assert not second.feature_pack_properties and second.phase is Phase.FINALIZING

    def test_transform_requires_output(self):
        with pytest.raises(TaskError):
            parse_tasks(ET.fromstring('<tasks><transform stylesheet="t.xsl" src="a.xml"/></tasks>'))


class TestReplaceProperties:
    """``${key}`` substitution."""

    def test_replace(self):
        props = {"jboss.home": "/opt/server"}
        text = "home=${jboss.home} mode=${mode:standalone} keep=${unknown}"
        assert replace_properties(text, props) == "home=/opt/server mode=standalone keep=${unknown}"


@pytest.fixture
def runner_setup(tmp_path, repository, feature_pack):
    builder = feature_pack("core").content("pkg", "bin/standalone.conf", "HOME=${jboss.home}\n")
    (builder.root / "resources" / "notes.txt").parent.mkdir(parents=True, exist_ok=True)
    (builder.root / "resources" / "notes.txt").write_text("notes", encoding="utf-8")
    package = FeaturePack(builder.root).packages()[0]

    versions = VersionProperties()
    versions.add_feature_pack("core", {"g:a": "g:a:1.0", "g:zip": "g:zip:1.0::zip"})
    staged = tmp_path / "staged"
    installer = PassThroughInstaller(BatchResolver(repository).resolve, versions, InstallationCache(staged))
    runner = TaskRunner(installer, versions, {"jboss.home": "/opt/server"}, staged, SchemaExtractor(["g"], staged),
                        {"core": {"config.name": "core"}})
    return runner, package, staged


class TestRunner:
    """Task execution against the staged directory."""

    def test_copy_artifact_to_directory(self, runner_setup, repository):
        runner, package, staged = runner_setup
        repository.add("g:a:1.0", {"schema/a.xsd": "<xs/>"})
        runner.execute(CopyArtifact("g:a", "bin/client/"), package)
        assert (staged / "bin" / "client" / "a-1.0.jar").is_file()
        assert (staged / "docs" / "schema" / "a.xsd").is_file()

    def test_copy_artifact_to_file(self, runner_setup, repository):
        runner, package, staged = runner_setup
        repository.add("g:a:1.0")
        runner.execute(CopyArtifact("g:a", "jboss-modules.jar"), package)
        assert (staged / "jboss-modules.jar").is_file()

    def test_copy_artifact_extract(self, runner_setup, repository):
        runner, package, staged = runner_setup
        path = repository.add("g:zip:1.0::zip")
        make_jar(path, {"LICENSE.txt": "l", "secret.txt": "s", "other.bin": "b"})
        task = CopyArtifact("g:zip", "docs/licenses", extract=True,
                            filters=parse_tasks(ET.fromstring(TASKS_XML)).tasks[1].filters)
        runner.execute(task, package)
        assert sorted(p.name for p in (staged / "docs" / "licenses").iterdir()) == ["LICENSE.txt"]

    def test_copy_artifact_optional(self, runner_setup):
        runner, package, staged = runner_setup
        runner.execute(CopyArtifact("g:unknown", "x.jar", optional=True), package)
        assert not (staged / "x.jar").exists()
        with pytest.raises(UnresolvedVersionError):
            runner.execute(CopyArtifact("g:unknown", "x.jar"), package)

    def test_copy_path_with_properties(self, runner_setup):
        runner, package, staged = runner_setup
        runner.execute(CopyPath("bin/standalone.conf", target="bin/standalone.conf", replace_props=True), package)
        assert (staged / "bin" / "standalone.conf").read_text() == "HOME=/opt/server\n"

    def test_copy_path_from_resources(self, runner_setup):
        runner, package, staged = runner_setup
        runner.execute(CopyPath("notes.txt", relative_to="resources", target="docs/notes.txt"), package)
        assert (staged / "docs" / "notes.txt").read_text() == "notes"

    def test_copy_path_missing_source(self, runner_setup):
        runner, package, _ = runner_setup
        with pytest.raises(TaskError):
            runner.execute(CopyPath("nope"), package)

    def test_delete(self, runner_setup):
        runner, package, staged = runner_setup
        (staged / "full" / "sub").mkdir(parents=True)
        (staged / "empty").mkdir(parents=True)
        runner.execute(DeletePath("full", if_empty=True), package)
        assert (staged / "full").exists()
        runner.execute(DeletePath("empty", if_empty=True), package)
        assert not (staged / "empty").exists()
        runner.execute(DeletePath("full", recursive=True), package)
        assert not (staged / "full").exists()
        runner.execute(DeletePath("never-existed"), package)

    def test_process_package_defers_finalizing_tasks(self, runner_setup, repository):
        runner, package, staged = runner_setup
        repository.add("g:a:1.0")
        path = repository.add("g:zip:1.0::zip")
        make_jar(path, {"LICENSE.txt": "l"})
        (staged / "bin" / "tmp").mkdir(parents=True)
        (staged / "bin" / "run.sh").write_bytes(b"a\r\nb\r\n")
        (staged / "bin" / "run.bat").write_bytes(b"a\nb\n")

        deferred = runner.process_package(package, parse_tasks(ET.fromstring(TASKS_XML)))

        assert [type(t) for t, _ in deferred] == [DeletePath]
        assert (staged / "bin" / "tmp").exists()
        assert (staged / "standalone" / "tmp").is_dir()
        assert (staged / "domain" / "data").is_dir()
        assert (staged / "bin" / "run.sh").read_bytes() == b"a\nb\n"
        assert (staged / "bin" / "run.bat").read_bytes() == b"a\r\nb\r\n"
        for task, pkg in deferred:
            runner.execute(task, pkg)
        assert not (staged / "bin" / "tmp").exists()


@pytest.fixture
def xsl_staged(runner_setup):
    runner, package, staged = runner_setup
    (staged / "docs").mkdir(parents=True)
    (staged / "docs" / "t.xsl").write_text(STYLESHEET, encoding="utf-8")
    (staged / "config.xml").write_text('<server name="s1"/>', encoding="utf-8")
    return runner, package, staged


class TestXslTransform:
    """Staged XML rewritten by a staged stylesheet."""

    def test_merged_properties(self, xsl_staged):
        runner, package, staged = xsl_staged
        runner.execute(XslTransform("config.xml", "out/result.xml", "docs/t.xsl", {"greeting": "hi"}), package)
        result = ET.parse(staged / "out" / "result.xml").getroot()
        assert result.tag == "result"
        assert result.get("name") == "s1"
        assert result.get("greeting") == "hi"
        assert result.get("home") == "/opt/server"
        assert result.get("config") == "none"

    def test_feature_pack_properties(self, xsl_staged):
        runner, package, staged = xsl_staged
        runner.execute(XslTransform("config.xml", "result.xml", "docs/t.xsl", feature_pack_properties=True), package)
        result = ET.parse(staged / "result.xml").getroot()
        assert result.get("home") == "none"
        assert result.get("config") == "core"
        assert result.get("greeting") == "none"

    def test_stylesheet_is_compiled_once(self, xsl_staged):
        runner, package, staged = xsl_staged
        runner.execute(XslTransform("config.xml", "one.xml", "docs/t.xsl"), package)
        (staged / "docs" / "t.xsl").write_text("not a stylesheet", encoding="utf-8")
        runner.execute(XslTransform("config.xml", "two.xml", "docs/t.xsl"), package)
        assert (staged / "one.xml").read_bytes() == (staged / "two.xml").read_bytes()

    def test_missing_source(self, xsl_staged):
        runner, package, _ = xsl_staged
        with pytest.raises(TaskError):
            runner.execute(XslTransform("missing.xml", "result.xml", "docs/t.xsl"), package)

    def test_existing_output(self, xsl_staged):
        runner, package, staged = xsl_staged
        (staged / "result.xml").write_text("<kept/>", encoding="utf-8")
        with pytest.raises(TaskError):
            runner.execute(XslTransform("config.xml", "result.xml", "docs/t.xsl"), package)
        assert (staged / "result.xml").read_text() == "<kept/>"

    def test_invalid_stylesheet(self, xsl_staged):
        runner, package, staged = xsl_staged
        (staged / "docs" / "bad.xsl").write_text("<not-a-stylesheet/>", encoding="utf-8")
        with pytest.raises(TaskError) as exc:
            runner.execute(XslTransform("config.xml", "result.xml", "docs/bad.xsl"), package)
        assert str(exc.value).startswith("Failed to transform")
        assert not (staged / "result.xml").exists()
