"""End-to-end pipeline runs against a temporary filesystem and fake host services."""

import json

import pytest
import yaml

from bcm43602_installer.errors import LockHeldError
from bcm43602_installer.lib.backend import BackendMode
from bcm43602_installer.lib.lock import LockGuard
from bcm43602_installer.lib.services import ServiceState
from bcm43602_installer.main import build_steps, run_install
from bcm43602_installer.pipeline import StepStatus

from .conftest import FakeModules, FakeServices, FakeWireless

IWD_RUNNING = ServiceState(present=True, active=True, enabled=True)
WPA_RUNNING = ServiceState(present=True, active=True, enabled=True)


def _tree(*roots):
    """Every file under roots with its content and mtime."""

    out = {}
    for root in roots:
        if not root.exists():
            continue
        for p in sorted(root.rglob("*")):
            if p.is_file():
                out[str(p)] = (p.read_bytes(), p.stat().st_mtime_ns)
    return out


def _status(result, step_id):
    return result.results[step_id].status


@pytest.mark.unit
class TestFullRun:
    def test_first_run_provisions_everything(self, make_ctx, layout, tmp_path):
        services = FakeServices({"wpa_supplicant": WPA_RUNNING})
        ctx = make_ctx(services=services)
        report = tmp_path / "report.json"

        result = run_install(ctx, report_path=str(report))

        assert result.ok, result.error
        fw = layout["firmware_dir"]
        assert (fw / "brcmfmac43602-pcie.bin").read_bytes() == b"\x00FIRMWARE\x01"
        nvram = (fw / "brcmfmac43602-pcie.txt").read_text()
        assert nvram == "boardtype=0x062b\nboardrev=0x1101\nmacaddr=aa:bb:cc:dd:ee:ff\nccode=X0\n"
        assert layout["backend_conf"].read_text() == "[device]\nwifi.backend=wpa_supplicant\n"
        assert services.calls == [("enable_now", "wpa_supplicant"), ("restart", "NetworkManager")]
        assert ctx.wireless.regdomains == ["DE"]
        assert not layout["lock_file"].exists()

        data = json.loads(report.read_text())
        assert data["execution"]["decisions"]["firmware_source"] == "vendored"
        assert data["execution"]["decisions"]["backend"]["reason"] == "iwd_unit_absent"
        assert data["execution"]["results"]["70_activate"]["status"] == "noop"
        assert list(data["execution"]["results"]) == [s.step_id for s in build_steps()]

    def test_second_run_writes_nothing(self, make_ctx, layout):
        first = make_ctx(services=FakeServices({"iwd": IWD_RUNNING}))
        assert run_install(first).ok
        watched = (layout["firmware_dir"], layout["backend_conf"].parent)
        before = _tree(*watched)

        services = FakeServices({"iwd": IWD_RUNNING})
        second = make_ctx(services=services)
        result = run_install(second)

        assert result.ok
        assert _tree(*watched) == before
        assert not any(".bak." in name for name in before)
        assert services.calls == []
        for step_id in ("30_stage_firmware", "40_install_nvram", "60_configure_backend", "70_activate"):
            assert _status(result, step_id) is StepStatus.NOOP

    def test_changed_mac_backs_up_previous_nvram(self, make_ctx, layout):
        assert run_install(make_ctx()).ok
        (layout["sysfs_net"] / "wlp2s0" / "address").write_text("02:11:22:33:44:55\n")

        result = run_install(make_ctx())

        assert _status(result, "40_install_nvram") is StepStatus.OK
        fw = layout["firmware_dir"]
        backups = sorted(fw.glob("brcmfmac43602-pcie.txt.bak.*"))
        assert len(backups) == 1
        assert "macaddr=aa:bb:cc:dd:ee:ff" in backups[0].read_text()
        assert "macaddr=02:11:22:33:44:55" in (fw / "brcmfmac43602-pcie.txt").read_text()


@pytest.mark.unit
class TestFailures:
    def test_concurrent_run_fails_fast_without_mutation(self, make_ctx, layout, tmp_path):
        report = tmp_path / "report.json"
        with LockGuard(layout["lock_file"]):
            with pytest.raises(LockHeldError):
                run_install(make_ctx(), report_path=str(report))
            assert layout["lock_file"].exists()

        assert not layout["firmware_dir"].exists()
        assert not layout["backend_conf"].exists()
        assert not report.exists()

    def test_invalid_mac_stops_before_writing_nvram(self, make_ctx, layout):
        (layout["sysfs_net"] / "wlp2s0" / "address").write_text("not-a-mac\n")

        result = run_install(make_ctx())

        assert result.failed == "40_install_nvram"
        assert "Invalid MAC" in result.error
        fw = layout["firmware_dir"]
        assert not (fw / "brcmfmac43602-pcie.txt").exists()
        assert [p.name for p in fw.iterdir()] == ["brcmfmac43602-pcie.bin"]
        assert "60_configure_backend" not in result.results
        assert not layout["lock_file"].exists()

    def test_missing_firmware_offline_is_fatal(self, make_ctx, layout):
        (layout["vendored_dir"] / "brcmfmac43602-pcie.bin").unlink()

        result = run_install(make_ctx(offline=True))

        assert result.failed == "30_stage_firmware"
        assert result.results["30_stage_firmware"].details["error_type"] == "ArtifactMissingError"
        assert not layout["lock_file"].exists()

    def test_regdomain_failure_is_not_fatal(self, make_ctx, layout):
        result = run_install(make_ctx(wireless=FakeWireless(fail_regdomain=True)))

        assert result.ok
        assert _status(result, "50_set_regdomain") is StepStatus.SOFT_FAIL
        assert layout["backend_conf"].exists()

    def test_report_written_even_when_a_step_fails(self, make_ctx, layout, tmp_path):
        (layout["sysfs_net"] / "wlp2s0" / "address").write_text("bogus\n")
        report = tmp_path / "report.yaml"

        run_install(make_ctx(), report_path=str(report))

        data = yaml.safe_load(report.read_text())
        assert data["execution"]["results"]["40_install_nvram"]["status"] == "fatal"


@pytest.mark.unit
class TestActivation:
    def test_reload_cycles_module_and_services(self, make_ctx):
        modules = FakeModules()
        services = FakeServices()
        ctx = make_ctx(modules=modules, services=services, reload=True, backend_mode=BackendMode.IWD)

        result = run_install(ctx)

        assert result.ok
        assert ctx.reloaded
        assert modules.calls == [("unload", "brcmfmac"), ("load", "brcmfmac")]
        assert ctx.wireless.downed == ["wlp2s0"]
        tail = services.calls[-5:]
        assert tail == [
            ("stop", "NetworkManager"),
            ("stop", "wpa_supplicant"),
            ("stop", "iwd"),
            ("start", "iwd"),
            ("start", "NetworkManager"),
        ]

    def test_failed_unload_recommends_reboot_and_restores_services(self, make_ctx):
        services = FakeServices()
        ctx = make_ctx(modules=FakeModules(fail_unload=True), services=services, reload=True)

        result = run_install(ctx)

        assert result.ok
        assert not ctx.reloaded
        assert _status(result, "70_activate") is StepStatus.SOFT_FAIL
        assert services.calls[-2:] == [("start", "wpa_supplicant"), ("start", "NetworkManager")]


@pytest.mark.unit
def test_rerun_cleans_temp_files_from_an_interrupted_run(make_ctx, layout):
    fw = layout["firmware_dir"]
    fw.mkdir(parents=True)
    conf_dir = layout["backend_conf"].parent
    conf_dir.mkdir(parents=True)
    leftovers = [
        fw / ".brcmfmac43602-pcie.txt.x8f2k1",
        fw / ".brcmfmac43602-pcie.bin.p0o9i8",
        conf_dir / ".wifi_backend.conf.z7y6x5",
    ]
    for p in leftovers:
        p.write_bytes(b"partial")

    result = run_install(make_ctx())

    assert result.ok
    assert not any(p.exists() for p in leftovers)
    assert sorted(p.name for p in fw.iterdir()) == ["brcmfmac43602-pcie.bin", "brcmfmac43602-pcie.txt"]
