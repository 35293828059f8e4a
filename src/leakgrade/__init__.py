"""LeakGrade - offline secret and credential detection for static text."""

__version__ = "1.0.0"

from leakgrade.analyzer import scan_key_value
from leakgrade.redactor import redact
from leakgrade.scanner import ScanResult, scan_free_text
from leakgrade.scoring import GradeResult, grade

__all__ = [
    "GradeResult",
    "ScanResult",
    "__version__",
    "grade",
    "redact",
    "scan_free_text",
    "scan_key_value",
]
