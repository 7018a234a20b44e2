"""Audit report contract and assembly.

Use explicit imports:
    from audit.reports.contract import AuditReport, SectionResult
    from audit.reports.assembler import ReportAssembler, assemble_report
"""

__all__ = [
    "AuditReport",
    "SectionResult",
    "ReportVersion",
    "ReportAssembler",
    "ReportAssemblerConfig",
    "assemble_report",
]
