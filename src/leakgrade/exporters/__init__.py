"""Output formats for scan results: JSON, SARIF, and SVG badges."""
