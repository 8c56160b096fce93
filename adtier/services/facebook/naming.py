"""
MTRX ad naming convention parser

=== Pattern ===
MTRX_{BRAND}{BATCH}_{COPYSTYLE}_{AWARENESS}_{ANGLETYPE}{NUM}_{AUDIENCE}_{CREATOR}_{EDITOR}_V{VERSION}

Example:
    MTRX_ACME01_CS1_TOF_PAIN2_BROAD_JOHN_MIKE_V1
    -> brand=ACME batch=01 copy_style=CS1 awareness=TOF angle=PAIN#2
       audience=BROAD creator=JOHN editor=MIKE version=1

Matching is case-insensitive; tags come back upper-cased. Most ad names do
not follow the convention, so a non-match returns None rather than raising.
"""
import re
from typing import Any, Optional

from adtier.schemas.performance import ParsedAdName

MTRX_REGEX = re.compile(
    r"^MTRX_([A-Z]+)(\d+)_([A-Z0-9]+)_([A-Z]+)_([A-Z]+)(\d+)_([A-Z0-9]+)_([A-Z]+)_([A-Z]+)_V(\d+)$",
    re.IGNORECASE,
)


def parse_ad_name(ad_name: Any) -> Optional[ParsedAdName]:
    """Decode an MTRX ad name into tags, or None when it does not match."""
    if not ad_name or not isinstance(ad_name, str):
        return None

    match = MTRX_REGEX.match(ad_name.strip())
    if not match:
        return None

    return ParsedAdName(
        brand=match.group(1).upper(),
        batch=match.group(2),
        copy_style=match.group(3).upper(),
        awareness=match.group(4).upper(),
        angle_type=match.group(5).upper(),
        angle_num=match.group(6),
        audience=match.group(7).upper(),
        creator=match.group(8).upper(),
        editor=match.group(9).upper(),
        version=match.group(10),
    )


def is_mtrx_format(ad_name: Any) -> bool:
    return parse_ad_name(ad_name) is not None


def summarize(parsed: Optional[ParsedAdName]) -> str:
    """Human-readable one-liner, e.g. 'ACME B01 | TOF | PAIN#2 | BROAD | by JOHN'"""
    if parsed is None:
        return "Non-MTRX ad"
    return (
        f"{parsed.brand} B{parsed.batch} | {parsed.awareness} | "
        f"{parsed.angle_type}#{parsed.angle_num} | {parsed.audience} | by {parsed.creator}"
    )
