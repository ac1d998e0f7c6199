"""CLI integration tests for layerconf."""

from collections.abc import Callable
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from layerconf.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def layered(write_config: Callable[[str, str], Path]) -> None:
    """Write a base, a production and a secrets layer."""
    write_config(
        "base.yaml",
        "server:\n  host: localhost\n  port: 8080\n"
        "hosts:\n  - a.internal\n  - b.internal\n"
        "debug: true\n",
    )
    write_config("production.yaml", "server:\n  host: prod.internal\ndebug: false\n")
    write_config("secrets.yaml", "db:\n  password: ${NOT_EXPANDED}\n")


class TestGetCommand:
    """Tests for the get command."""

    def test_scalar(
        self, runner: CliRunner, config_dir: Path, layered: None, clean_env: None
    ) -> None:
        """Scalars are printed as text."""
        result = runner.invoke(cli, ["-d", str(config_dir), "get", "server.port"])

        assert result.exit_code == 0
        assert result.output.strip() == "8080"

    def test_bool_is_yaml_text(
        self, runner: CliRunner, config_dir: Path, layered: None, clean_env: None
    ) -> None:
        """Booleans are printed the way YAML spells them."""
        result = runner.invoke(cli, ["-d", str(config_dir), "get", "debug"])
        assert result.output.strip() == "true"

    def test_sequence_index(
        self, runner: CliRunner, config_dir: Path, layered: None, clean_env: None
    ) -> None:
        """Sequence elements are addressed by index."""
        result = runner.invoke(cli, ["-d", str(config_dir), "get", "hosts.1"])
        assert result.output.strip() == "b.internal"

    def test_container_as_yaml(
        self, runner: CliRunner, config_dir: Path, layered: None, clean_env: None
    ) -> None:
        """Containers are printed as YAML."""
        result = runner.invoke(cli, ["-d", str(config_dir), "get", "server"])

        assert result.exit_code == 0
        assert yaml.safe_load(result.output) == {"host": "localhost", "port": 8080}

    def test_null(
        self,
        runner: CliRunner,
        config_dir: Path,
        write_config: Callable[[str, str], Path],
        clean_env: None,
    ) -> None:
        """A key set to nothing prints null."""
        write_config("base.yaml", "empty:\n")

        result = runner.invoke(cli, ["-d", str(config_dir), "get", "empty"])

        assert result.exit_code == 0
        assert result.output.strip() == "null"

    def test_missing_key(
        self, runner: CliRunner, config_dir: Path, layered: None, clean_env: None
    ) -> None:
        """A missing key is an error."""
        result = runner.invoke(cli, ["-d", str(config_dir), "get", "nope.nothing"])

        assert result.exit_code == 1
        assert "Error: key not found: nope.nothing" in result.output


class TestEnvironmentOption:
    """Tests for -e/--env and LAYERCONF_ENVIRONMENT."""

    def test_env_layer_overrides_base(
        self, runner: CliRunner, config_dir: Path, layered: None, clean_env: None
    ) -> None:
        """The environment layer overrides the base layer key by key."""
        result = runner.invoke(
            cli, ["-d", str(config_dir), "-e", "production", "get", "server"]
        )

        assert result.exit_code == 0
        assert yaml.safe_load(result.output) == {
            "host": "prod.internal",
            "port": 8080,
        }

    def test_env_variable(
        self,
        runner: CliRunner,
        config_dir: Path,
        layered: None,
        clean_env: None,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """LAYERCONF_ENVIRONMENT selects the layer when -e is not given."""
        monkeypatch.setenv("LAYERCONF_ENVIRONMENT", "production")

        result = runner.invoke(cli, ["-d", str(config_dir), "get", "debug"])

        assert result.output.strip() == "false"

    def test_config_dir_variable(
        self,
        runner: CliRunner,
        config_dir: Path,
        layered: None,
        clean_env: None,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """LAYERCONF_CONFIG_DIR selects the directory when -d is not given."""
        monkeypatch.setenv("LAYERCONF_CONFIG_DIR", str(config_dir))

        result = runner.invoke(cli, ["get", "server.host"])

        assert result.output.strip() == "localhost"

    def test_duplicate_layer_files(
        self,
        runner: CliRunner,
        config_dir: Path,
        write_config: Callable[[str, str], Path],
        clean_env: None,
    ) -> None:
        """Both base.yaml and base.yml in one directory is an error."""
        write_config("base.yaml", "a: 1\n")
        write_config("base.yml", "a: 2\n")

        result = runner.invoke(cli, ["-d", str(config_dir), "dump"])

        assert result.exit_code == 1
        assert "Error: Conflicting config files found" in result.output


class TestFileOption:
    """Tests for -f/--file."""

    def test_explicit_files_skip_discovery(
        self,
        runner: CliRunner,
        config_dir: Path,
        layered: None,
        tmp_path: Path,
        clean_env: None,
    ) -> None:
        """Explicit files replace the layered directory."""
        first = tmp_path / "first.yaml"
        first.write_text("name: first\nport: 1\n")
        second = tmp_path / "second.toml"
        second.write_text('name = "second"\n')

        result = runner.invoke(
            cli,
            ["-d", str(config_dir), "-f", str(first), "-f", str(second), "dump"],
        )

        assert result.exit_code == 0
        assert yaml.safe_load(result.output) == {"name": "second", "port": 1}

    def test_missing_file(
        self, runner: CliRunner, tmp_path: Path, clean_env: None
    ) -> None:
        """Click rejects files that do not exist."""
        result = runner.invoke(cli, ["-f", str(tmp_path / "missing.yaml"), "dump"])

        assert result.exit_code != 0
        assert "does not exist" in result.output

    def test_parse_error(
        self, runner: CliRunner, tmp_path: Path, clean_env: None
    ) -> None:
        """Malformed documents are reported as errors."""
        bad = tmp_path / "bad.yaml"
        bad.write_text("a: [1, 2\n")

        result = runner.invoke(cli, ["-f", str(bad), "dump"])

        assert result.exit_code == 1
        assert "Error: Failed to parse" in result.output


class TestPlaceholders:
    """Tests for ${NAME} expansion and --no-expand."""

    def test_expands_from_environment(
        self,
        runner: CliRunner,
        tmp_path: Path,
        clean_env: None,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Placeholders are replaced with environment variables."""
        monkeypatch.setenv("LAYERCONF_TEST_HOST", "db.internal")
        config = tmp_path / "app.yaml"
        config.write_text(
            "host: ${LAYERCONF_TEST_HOST}\nport: ${LAYERCONF_NO_PORT:5432}\n"
        )

        result = runner.invoke(cli, ["-f", str(config), "dump"])

        assert result.exit_code == 0
        assert yaml.safe_load(result.output) == {"host": "db.internal", "port": 5432}

    def test_unresolved_placeholder(
        self,
        runner: CliRunner,
        tmp_path: Path,
        clean_env: None,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Placeholders without a value or default are errors."""
        monkeypatch.delenv("LAYERCONF_TEST_MISSING", raising=False)
        config = tmp_path / "app.yaml"
        config.write_text("host: ${LAYERCONF_TEST_MISSING}\n")

        result = runner.invoke(cli, ["-f", str(config), "dump"])

        assert result.exit_code == 1
        assert "Error: Invalid placeholder" in result.output

    def test_no_expand(
        self, runner: CliRunner, tmp_path: Path, clean_env: None
    ) -> None:
        """--no-expand keeps placeholders verbatim."""
        config = tmp_path / "app.yaml"
        config.write_text("host: ${LAYERCONF_TEST_MISSING}\n")

        result = runner.invoke(cli, ["--no-expand", "-f", str(config), "get", "host"])

        assert result.exit_code == 0
        assert result.output.strip() == "${LAYERCONF_TEST_MISSING}"

    def test_secrets_never_expanded(
        self, runner: CliRunner, config_dir: Path, layered: None, clean_env: None
    ) -> None:
        """The secrets layer is loaded without expansion."""
        result = runner.invoke(cli, ["-d", str(config_dir), "get", "db.password"])

        assert result.exit_code == 0
        assert result.output.strip() == "${NOT_EXPANDED}"


class TestKeysAndDump:
    """Tests for the keys and dump commands."""

    def test_keys_of_root(
        self, runner: CliRunner, config_dir: Path, layered: None, clean_env: None
    ) -> None:
        """Root keys are listed one per line."""
        result = runner.invoke(cli, ["-d", str(config_dir), "keys"])

        assert result.exit_code == 0
        assert result.output.split() == ["server", "hosts", "debug", "db"]

    def test_keys_of_sequence(
        self, runner: CliRunner, config_dir: Path, layered: None, clean_env: None
    ) -> None:
        """Sequence children are their indices."""
        result = runner.invoke(cli, ["-d", str(config_dir), "keys", "hosts"])
        assert result.output.split() == ["0", "1"]

    def test_dump_merged(
        self, runner: CliRunner, config_dir: Path, layered: None, clean_env: None
    ) -> None:
        """dump prints the merged tree."""
        result = runner.invoke(cli, ["-d", str(config_dir), "-e", "production", "dump"])

        assert result.exit_code == 0
        assert yaml.safe_load(result.output) == {
            "server": {"host": "prod.internal", "port": 8080},
            "hosts": ["a.internal", "b.internal"],
            "debug": False,
            "db": {"password": "${NOT_EXPANDED}"},
        }

    def test_dump_empty_directory(
        self, runner: CliRunner, config_dir: Path, clean_env: None
    ) -> None:
        """An empty directory dumps an empty mapping."""
        result = runner.invoke(cli, ["-d", str(config_dir), "dump"])

        assert result.exit_code == 0
        assert result.output.strip() == "{}"

    def test_verbose(
        self, runner: CliRunner, config_dir: Path, layered: None, clean_env: None
    ) -> None:
        """--verbose does not change the printed values."""
        result = runner.invoke(cli, ["-v", "-d", str(config_dir), "get", "server.port"])

        assert result.exit_code == 0
        assert "8080" in result.output
