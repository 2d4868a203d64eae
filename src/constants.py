"""
Global constants for ME1 Save Utilities.
Contains path configuration and save file naming.
"""

import os

# **************************************************************** #
#                       Build Info                                     #
# **************************************************************** #
APP_VERSION = "0.1.0"

# **************************************************************** #
#                       Environment Detection                        #
# **************************************************************** #
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))

# **************************************************************** #
#                       Path Configuration                           #
# **************************************************************** #
if DEV_MODE:
    DATA_DIR = os.path.join(SCRIPT_DIR, "..", "workdir")
else:
    DATA_DIR = os.getenv(
        "ME1_SAVE_HOME", os.path.join(os.path.expanduser("~"), ".me1_save_utilities")
    )

TEMP_LOG_DIR = DATA_DIR
CONFIG_FILE = os.path.join(DATA_DIR, "config.json")
LOG_FILE = os.path.join(TEMP_LOG_DIR, "error.log")

# **************************************************************** #
#                       Save Files                                   #
# **************************************************************** #
SAVE_EXTENSION = ".MassEffectSave"
BACKUP_SUFFIX = ".bak"
# Default location used by the PC release under Documents
DEFAULT_SAVES_DIR = os.path.join(
    os.path.expanduser("~"), "Documents", "BioWare", "Mass Effect", "Save"
)
