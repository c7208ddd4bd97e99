from json_toolbox.core.domain.text_scanner import ScanState, Segment, scan

__all__ = ["ScanState", "Segment", "scan"]
