import importlib

import pytest


ENTRYPOINTS = [
    "ocrnote",
]


@pytest.mark.parametrize("module_name", ENTRYPOINTS)
def test_entrypoint_help(module_name):
    module = importlib.import_module(module_name)
    assert hasattr(module, "main"), f"{module_name} missing main()"

    with pytest.raises(SystemExit) as excinfo:
        module.main(["--help"])

    assert excinfo.value.code == 0


@pytest.mark.parametrize("command", ["preprocess", "preview", "convert", "settings"])
def test_subcommand_help(command):
    module = importlib.import_module("ocrnote")

    with pytest.raises(SystemExit) as excinfo:
        module.main([command, "--help"])

    assert excinfo.value.code == 0


def test_no_command_prints_help(capsys):
    module = importlib.import_module("ocrnote")
    assert module.main([]) == 1
    assert "usage: ocrnote" in capsys.readouterr().out


def test_unknown_log_level_env_is_usage_error(monkeypatch):
    monkeypatch.setenv("OCRNOTE_LOG_LEVEL", "chatty")
    module = importlib.import_module("ocrnote")

    with pytest.raises(SystemExit) as excinfo:
        module.main(["settings", "show"])

    assert excinfo.value.code == 2
