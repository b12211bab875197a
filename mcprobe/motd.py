# mcprobe/motd.py
import json
import re

# Minecraft color/formatting codes (§ followed by one code character)
STRIP_FORMATTING = re.compile(r'§.', re.DOTALL)


def _component_text(component):
    # JSON chat components nest through "extra"
    if isinstance(component, str):
        return component
    if isinstance(component, list):
        return "".join(_component_text(part) for part in component)
    if isinstance(component, dict):
        text = str(component.get("text", ""))
        if "translate" in component and not text:
            text = str(component["translate"])
        return text + "".join(_component_text(part) for part in component.get("extra", []))
    return ""


def sanitize_motd(motd):
    """Plain, human-readable MOTD: flattens chat components and drops § codes."""
    if not motd:
        return "" # Return empty string instead of None
    if isinstance(motd, (dict, list)):
        text = _component_text(motd)
    else:
        text = str(motd)
    return STRIP_FORMATTING.sub('', text).strip()


def raw_motd(description):
    """MOTD as the server sent it: plain strings unchanged, components as JSON text."""
    if description is None:
        return ""
    if isinstance(description, str):
        return description
    return json.dumps(description, ensure_ascii=False)
