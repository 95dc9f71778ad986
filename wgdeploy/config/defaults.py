"""Fixed deployment policy for DeployWireguard.

These constants describe the single tunnel this tool deploys and the
WireGuard for Windows layout it expects. Keeping them centralized makes it
easier to audit the policy without touching the pipeline.
"""

from pathlib import PureWindowsPath

# Routed networks pushed to every client, whatever the source file says.
DEFAULT_ALLOWED_IPS = "192.168.1.0/24, 192.168.15.0/24, 192.168.205.0/24"
REQUIRED_SECTIONS = ("Interface", "Peer")

CONFIG_NAME = "cgof-vpn.conf"
ARTIFACT_SUFFIX = ".dpapi"
ARTIFACT_NAME = CONFIG_NAME + ARTIFACT_SUFFIX

# Relative to the program installation directory.
CONFIG_SUBDIR = ("WireGuard", "Data", "Configurations")
CONTROL_UTILITY_SUBPATH = ("WireGuard", "wireguard.exe")
INSTALL_TUNNEL_SUBCOMMAND = "/installtunnelservice"

# Relative to the user's home directory.
DESKTOP_SUBDIR = "Desktop"

ENV_PROGRAM_FILES = "PROGRAMFILES"
ENV_USER_PROFILE = "USERPROFILE"
ENV_LOG_DIR = "WGDEPLOY_LOG_DIR"
ENV_DEBUG = "WGDEPLOY_DEBUG"
DEFAULT_PROGRAM_FILES = str(PureWindowsPath(r"C:\Program Files"))

# HKLM key owned by WireGuard for Windows; LimitedOperatorUI=1 lets members of
# "Network Configuration Operators" start and stop tunnels.
REGISTRY_KEY = r"Software\WireGuard"
LIMITED_OPERATOR_VALUE = "LimitedOperatorUI"
LIMITED_OPERATOR_ENABLED = 1

ARTIFACT_POLL_INTERVAL = 0.3

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_HELP = 2
HELP_FLAGS = ("-h", "--help", "/?")
