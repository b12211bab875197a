# mcprobe/config.py
import os
from dotenv import load_dotenv

load_dotenv()

# Ports
TARGET_PORT = int(os.getenv("TARGET_PORT", "25565")) # Java edition (TCP)
BEDROCK_PORT = int(os.getenv("BEDROCK_PORT", "19132")) # Bedrock/Pocket edition (UDP)

# Per-attempt deadline in seconds
QUERY_TIMEOUT = float(os.getenv("QUERY_TIMEOUT", "5"))

# Protocol numbers sent in probes
# -1 asks a 1.7+ server to report its own protocol (https://wiki.vg/Server_List_Ping)
JSON_PROTOCOL_VERSION = int(os.getenv("JSON_PROTOCOL_VERSION", "-1"))
EXTENDED_PROTOCOL_VERSION = int(os.getenv("EXTENDED_PROTOCOL_VERSION", "74")) # 1.6.2

# Batch scanning
SCAN_WORKERS = int(os.getenv("SCAN_WORKERS", "16"))
