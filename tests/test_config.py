"""Tests for reading the job out of .travis.yml."""

import textwrap

import pytest

from localci.config import job_from_config, load_travis_config, parse_env_row, resolve_env, runtime_versions
from localci.descriptor import render_descriptor
from localci.workspace import ENTRYPOINT_NAME
from localci.errors import ConfigurationError


def write_config(project, text):
    (project / ".travis.yml").write_text(textwrap.dedent(text))


class TestLoad:

    def test_missing_file(self, project):
        with pytest.raises(ConfigurationError) as exc:
            load_travis_config(project)
        assert exc.value.field == "config"

    def test_not_a_mapping(self, project):
        write_config(project, "- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            load_travis_config(project)

    def test_invalid_yaml(self, project):
        write_config(project, "php: [8.1\n")
        with pytest.raises(ConfigurationError):
            load_travis_config(project)


class TestEnv:

    def test_parse_row(self):
        assert parse_env_row('FOO=bar BAZ="two words" EMPTY=') == {
            "FOO": "bar",
            "BAZ": "two words",
            "EMPTY": "",
        }

    def test_secure_entries_skipped(self):
        assert parse_env_row({"secure": "abc=="}) == {}

    def test_bad_row(self):
        with pytest.raises(ConfigurationError) as exc:
            parse_env_row("JUSTANAME")
        assert exc.value.field == "env"

    def test_list_is_matrix(self):
        config = {"env": ["A=1", "A=2 B=3"]}
        assert resolve_env(config, 0) == {"A": "1"}
        assert resolve_env(config, 1) == {"A": "2", "B": "3"}

    def test_global_then_matrix(self):
        config = {"env": {"global": ["A=global C=keep"], "matrix": ["A=row"]}}
        assert resolve_env(config) == {"A": "row", "C": "keep"}

    def test_jobs_alias(self):
        assert resolve_env({"env": {"jobs": ["X=1"]}}) == {"X": "1"}

    def test_row_out_of_range(self):
        with pytest.raises(ConfigurationError):
            resolve_env({"env": ["A=1"]}, 3)

    def test_no_env(self):
        assert resolve_env({}) == {}


class TestJobFromConfig:

    CONFIG = """\
        language: php
        php:
          - 8.1
          - "7.4"
        env:
          global:
            - APP_ENV=test
          matrix:
            - DB=mysql
            - DB=pgsql
        before_install: phpenv config-rm xdebug.ini
        install:
          - composer install
        before_script:
          - cp .env.dist .env
        script:
          - vendor/bin/phpunit
          - vendor/bin/phpcs
        """

    def test_first_version_by_default(self, project):
        write_config(project, self.CONFIG)
        j = job_from_config(project, job_id="1")
        assert j.runtime_version == "8.1"
        assert j.env == {"APP_ENV": "test", "DB": "mysql"}
        assert j.before_install == ("phpenv config-rm xdebug.ini",)
        assert j.install == ("composer install",)
        assert j.before_script == ("cp .env.dist .env",)
        assert j.script == ("vendor/bin/phpunit", "vendor/bin/phpcs")
        assert j.image_tag == "demo:v1"

    def test_select_version_and_row(self, project):
        write_config(project, self.CONFIG)
        j = job_from_config(project, runtime_version="7.4", env_row=1)
        assert j.runtime_version == "7.4"
        assert j.env["DB"] == "pgsql"

    def test_unknown_version(self, project):
        write_config(project, self.CONFIG)
        with pytest.raises(ConfigurationError) as exc:
            job_from_config(project, runtime_version="5.6")
        assert exc.value.field == "runtime_version"

    def test_no_php_declared(self, project):
        write_config(project, "script: phpunit\n")
        with pytest.raises(ConfigurationError) as exc:
            job_from_config(project)
        assert exc.value.field == "runtime_version"

    def test_version_from_command_line(self, project):
        write_config(project, "script: phpunit\n")
        assert job_from_config(project, runtime_version="8.2").runtime_version == "8.2"

    def test_empty_script(self, project):
        write_config(project, "php: 8.1\ninstall: composer install\n")
        with pytest.raises(ConfigurationError) as exc:
            job_from_config(project)
        assert exc.value.field == "script"


class TestVersionsAsWritten:

    def test_decimal_versions_keep_their_digits(self, project):
        write_config(project, "php:\n  - 7.10\n  - 8.0\n  - 8\nscript: phpunit\n")
        assert runtime_versions(load_travis_config(project)) == ["7.10", "8.0", "8"]

    def test_selected_version_reaches_base_image(self, project):
        write_config(project, "php: 7.10\nscript: phpunit\n")
        j = job_from_config(project, job_id="1")
        assert render_descriptor(j, ENTRYPOINT_NAME)[0] == "FROM travisci/php:7.10"


def test_block_scalar_install_is_one_instruction(project):
    write_config(project, """\
        php: "8.1"
        install:
          - |
            if [ -f composer.json ]; then
              composer install
            fi
        script: phpunit
        """)
    j = job_from_config(project, job_id="1")
    lines = render_descriptor(j, ENTRYPOINT_NAME)
    assert len(lines) == 6
    assert lines[3].startswith('RUN ["/bin/sh", "-c", ')
