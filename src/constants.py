"""
Global constants for the Drop Table Editor data layer.
Contains path configuration, table format constants, and the required table lists.
"""

import os

# **************************************************************** #
#                       Environment Detection                        #
# **************************************************************** #
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))

# **************************************************************** #
#                       Path Configuration                           #
# **************************************************************** #
if DEV_MODE:
    TEMP_LOG_DIR = os.path.join(SCRIPT_DIR, "..", "workdir")
    CONFIG_FILE = os.path.join(SCRIPT_DIR, "..", "workdir", "DropTableEditor.config")
else:
    TEMP_LOG_DIR = SCRIPT_DIR
    CONFIG_FILE = os.path.join(SCRIPT_DIR, "DropTableEditor.config")

# **************************************************************** #
#                       Text Encodings                               #
# **************************************************************** #
# Tried in order on load; each failure restarts the whole parse.
ENCODING_CANDIDATES = ("euc_kr", "shift_jis", "gb18030")
SAVE_ENCODING = "euc_kr"

# **************************************************************** #
#                       STL Format                                   #
# **************************************************************** #
STL_TYPE_QUEST = "QEST01"
STL_TYPE_ITEM = "ITST01"

# Language 1 is the display language for name lookups
DISPLAY_LANGUAGE = 1

MAX_LANGUAGE_COUNT = 10
DEFAULT_LANGUAGE_COUNT = 2

# **************************************************************** #
#                       STB Format                                   #
# **************************************************************** #
STB_MAGIC = b"STB1"
STB_DEFAULT_COLUMN_WIDTH = 50
STB_DEFAULT_ROW_HEIGHT = 20

# **************************************************************** #
#                       Data Folder Layout                           #
# **************************************************************** #
STB_FOLDER = "STB"
DROP_TABLE_FILE = "ITEM_DROP.STB"

# Item category lists, in category order (1-14)
ITEM_CATEGORY_TABLES = [
    "LIST_FACEITEM",
    "LIST_CAP",
    "LIST_BODY",
    "LIST_ARMS",
    "LIST_FOOT",
    "LIST_BACK",
    "LIST_JEWEL",
    "LIST_WEAPON",
    "LIST_SUBWPN",
    "LIST_USEITEM",
    "LIST_JEMITEM",
    "LIST_NATURAL",
    "LIST_PAT",
]

REQUIRED_STB_TABLES = ["ITEM_DROP", "LIST_NPC"] + ITEM_CATEGORY_TABLES
REQUIRED_STL_TABLES = ["LIST_NPC_S"] + [f"{name}_S" for name in ITEM_CATEGORY_TABLES]
