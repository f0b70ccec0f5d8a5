from .step_10_probe_system import ProbeSystemStep
from .step_20_install_prereqs import InstallPrereqsStep
from .step_30_stage_firmware import StageFirmwareStep
from .step_40_install_nvram import InstallNvramStep
from .step_50_set_regdomain import SetRegdomainStep
from .step_60_configure_backend import ConfigureBackendStep
from .step_70_activate import ActivateStep
from .step_80_postcheck import PostcheckStep

__all__ = [
    "ProbeSystemStep",
    "InstallPrereqsStep",
    "StageFirmwareStep",
    "InstallNvramStep",
    "SetRegdomainStep",
    "ConfigureBackendStep",
    "ActivateStep",
    "PostcheckStep",
]
