from __future__ import annotations
import os
import tempfile

TEMP_DIR = os.environ.get("LOCALCI_TEMP_DIR", os.path.join(tempfile.gettempdir(), "localci"))
BASE_IMAGE = os.environ.get("LOCALCI_BASE_IMAGE", "travisci/php")
DOCKER_BIN = os.environ.get("LOCALCI_DOCKER", "docker")
TERMINATE_TIMEOUT = float(os.environ.get("LOCALCI_TERMINATE_TIMEOUT", "10"))
