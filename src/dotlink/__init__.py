"""Core package for the dotlink project."""

from .cli import app, run
from .config import Config, ConfigError, Settings, load_config
from .deployer import Deployer, DeployError
from .file_state import FileSets, FileState, SymlinkDescription, TemplateDescription
from .manifest import Manifest, ManifestError
from .models import (
    ArtifactKind,
    DeployAction,
    DeployResult,
    Owner,
    SymbolicTarget,
    TemplateTarget,
)
from .templating import TemplateRenderError

__all__ = [
    "Config",
    "ConfigError",
    "Settings",
    "load_config",
    "Deployer",
    "DeployError",
    "FileSets",
    "FileState",
    "SymlinkDescription",
    "TemplateDescription",
    "Manifest",
    "ManifestError",
    "ArtifactKind",
    "DeployAction",
    "DeployResult",
    "Owner",
    "SymbolicTarget",
    "TemplateTarget",
    "TemplateRenderError",
    "app",
    "run",
]
