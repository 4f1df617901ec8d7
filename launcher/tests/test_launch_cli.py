import json

import pytest
from typer.testing import CliRunner

import launcher.cli as cli
from conftest import FakeProcessLauncher
from launcher.cli import app

runner = CliRunner()


@pytest.fixture
def fakes(monkeypatch, container_runtime, process_launcher):
    monkeypatch.setattr(cli, "make_container_runtime", lambda: container_runtime)
    monkeypatch.setattr(cli, "make_process_launcher", lambda: process_launcher)
    return container_runtime, process_launcher


def invoke(base_dir, *args):
    return runner.invoke(app, [*args, "--base-dir", str(base_dir)])


def test_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "Usage" in result.output
    assert "--relay" in result.output
    assert "--parachain-id" in result.output


def test_launch_moonriver(fakes, base_dir):
    container_runtime, process_launcher = fakes
    result = invoke(base_dir, "moonriver-v47")
    assert result.exit_code == 0, result.output
    assert "kusama-v9030" in result.output
    assert "downloaded" in result.output
    assert len(process_launcher.started) == 1
    _, doc = process_launcher.started[0]
    assert doc.relaychain.bin == "build/kusama-v9030/polkadot"
    assert doc.parachains[0].id == 1000
    assert len(doc.relaychain.nodes) == 2
    assert len(doc.parachains[0].nodes) == 2
    assert process_launcher.stop_calls == 1


def test_launch_with_overrides(fakes, base_dir):
    _, process_launcher = fakes
    result = invoke(base_dir, "moonriver-v47", "--relay", "rococo-9003", "--parachain-id", "2000")
    assert result.exit_code == 0, result.output
    _, doc = process_launcher.started[0]
    assert doc.relaychain.bin == "build/rococo-9003/polkadot"
    assert doc.relaychain.chain == "rococo-local"
    assert doc.parachains[0].id == 2000
    assert doc.parachains[0].chain == "moonriver-local"


def test_unknown_parachain_lists_profiles(fakes, base_dir, registry):
    container_runtime, process_launcher = fakes
    result = invoke(base_dir, "not-a-real-profile")
    assert result.exit_code == 1
    assert "Invalid parachain name: not-a-real-profile" in result.output
    for name in registry.list_parachain_names():
        assert name in result.output
    assert process_launcher.started == []
    assert container_runtime.calls == []


def test_unknown_relay_lists_relays(fakes, base_dir, registry):
    _, process_launcher = fakes
    result = invoke(base_dir, "moonriver-v47", "--relay", "westend")
    assert result.exit_code == 1
    assert "Invalid relay name: westend" in result.output
    for name in registry.list_relay_names():
        assert name in result.output
    assert process_launcher.started == []


@pytest.mark.parametrize("args", [[], ["moonriver-v47", "alphanet-v8.1"]])
def test_wrong_argument_count_prints_usage(fakes, base_dir, args):
    _, process_launcher = fakes
    result = invoke(base_dir, *args)
    assert result.exit_code == 1
    assert "Invalid arguments (expected: 1" in result.output
    assert "Usage: paralaunch" in result.output
    assert process_launcher.started == []


def test_missing_local_binary(fakes, base_dir):
    _, process_launcher = fakes
    result = invoke(base_dir, "moonriver-local")
    assert result.exit_code == 1
    assert "missing local binary" in result.output
    assert process_launcher.started == []


def test_download_failure(fakes, base_dir):
    container_runtime, process_launcher = fakes
    container_runtime.files.pop("purestake/moonbeam:v0.8.1")
    result = invoke(base_dir, "alphanet-v8.1")
    assert result.exit_code == 1
    assert "download failed" in result.output
    assert process_launcher.started == []


def test_launch_failure_tears_down(monkeypatch, container_runtime, base_dir):
    launcher = FakeProcessLauncher(fail_on_start=True)
    monkeypatch.setattr(cli, "make_container_runtime", lambda: container_runtime)
    monkeypatch.setattr(cli, "make_process_launcher", lambda: launcher)
    result = invoke(base_dir, "moonriver-v47")
    assert result.exit_code == 2
    assert "Failed to start network" in result.output
    assert launcher.stop_calls == 1


def test_network_exit_code_is_returned(monkeypatch, container_runtime, base_dir):
    launcher = FakeProcessLauncher(exit_code=1)
    monkeypatch.setattr(cli, "make_container_runtime", lambda: container_runtime)
    monkeypatch.setattr(cli, "make_process_launcher", lambda: launcher)
    result = invoke(base_dir, "moonriver-v47")
    assert result.exit_code == 1
    assert launcher.stop_calls == 1


def test_dry_run_prints_config_without_launching(fakes, base_dir):
    _, process_launcher = fakes
    result = invoke(base_dir, "moonriver-v47", "--dry-run")
    assert result.exit_code == 0, result.output
    doc = json.loads(result.output[result.output.index("{"):])
    assert doc["relaychain"]["bin"] == "build/kusama-v9030/polkadot"
    assert doc["parachains"][0]["id"] == 1000
    assert process_launcher.started == []


def test_second_run_uses_cache(fakes, base_dir):
    container_runtime, _ = fakes
    assert invoke(base_dir, "moonriver-v47", "--dry-run").exit_code == 0
    assert container_runtime.count("create") == 2
    result = invoke(base_dir, "moonriver-v47", "--dry-run")
    assert result.exit_code == 0
    assert "downloading" not in result.output
    assert container_runtime.count("create") == 2


def test_list_profiles(fakes, base_dir):
    result = invoke(base_dir, "--list-profiles")
    assert result.exit_code == 0
    assert "moonriver-v47-fast" in result.output
    assert "rococo-local" in result.output


def test_custom_profiles_file(fakes, base_dir, tmp_path):
    container_runtime, process_launcher = fakes
    profiles = tmp_path / "profiles.yaml"
    profiles.write_text(
        "relays:\n"
        "  my-relay:\n"
        "    runtime_id: rococo-local\n"
        "    container_image: purestake/moonbase-relay-testnet:sha-aa386760\n"
        "parachains:\n"
        "  my-para:\n"
        "    relay_profile_name: my-relay\n"
        "    runtime_id: moonbase-local\n"
        "    container_image: purestake/moonbeam:v0.8.1\n"
    )
    result = invoke(base_dir, "my-para", "--profiles", str(profiles))
    assert result.exit_code == 0, result.output
    _, doc = process_launcher.started[0]
    assert doc.relaychain.bin == "build/my-relay/polkadot"
    assert doc.parachains[0].bin == "build/my-para/moonbeam"


def test_unreadable_profiles_file(fakes, base_dir, tmp_path):
    result = invoke(base_dir, "my-para", "--profiles", str(tmp_path / "missing.yaml"))
    assert result.exit_code == 1
    assert "Cannot load profiles" in result.output


def test_profiles_file_with_list_section(fakes, base_dir, tmp_path):
    profiles = tmp_path / "profiles.yaml"
    profiles.write_text("relays:\n  - my-relay\n")
    result = invoke(base_dir, "my-para", "--profiles", str(profiles))
    assert result.exit_code == 1
    assert not isinstance(result.exception, AttributeError)
    assert "Cannot load profiles" in result.output


def test_negative_parachain_id(fakes, base_dir):
    container_runtime, process_launcher = fakes
    result = invoke(base_dir, "moonriver-v47", "--parachain-id=-1")
    assert result.exit_code == 1
    assert "Invalid parachain id: -1" in result.output
    assert "Usage: paralaunch" in result.output
    assert container_runtime.calls == []
    assert process_launcher.started == []
