"""
Result writers for success assessment reports.

New output formats are added as ResultWriter subclasses and registered
in create_result_writer.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Mapping, Optional, TextIO

from hitscope.core.models import SuccessScoreResult

ReportResults = Mapping[Path, SuccessScoreResult]
ReportErrors = Mapping[Path, str]


class ResultWriter(ABC):
    """Abstract base class for result writers (Strategy Pattern)."""

    @abstractmethod
    def write(
        self,
        results: ReportResults,
        output_path: Path,
        errors: Optional[ReportErrors] = None,
    ) -> None:
        """Write results (and any per-file failures) to the specified path."""


class TextResultWriter(ResultWriter):
    """Writes assessments to a human-readable text report."""

    def __init__(self, include_timestamp: bool = True):
        """
        Initialize text writer.

        Args:
            include_timestamp: Whether to include timestamp in output
        """
        self.include_timestamp = include_timestamp
        self.logger = logging.getLogger("result_writer.text")

    def write(
        self,
        results: ReportResults,
        output_path: Path,
        errors: Optional[ReportErrors] = None,
    ) -> None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        errors = errors or {}

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write("=" * 70 + "\n")
            f.write("HITSCOPE SUCCESS ANALYSIS REPORT\n")
            f.write("=" * 70 + "\n")

            if self.include_timestamp:
                f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")

            f.write(f"Tracks Scored: {len(results)}\n")
            if errors:
                f.write(f"Tracks Failed: {len(errors)}\n")
            f.write("=" * 70 + "\n\n")

            for file_path, result in results.items():
                self._write_single_result(f, Path(file_path), result)

            if errors:
                f.write("-" * 70 + "\n")
                f.write("FAILURES\n")
                f.write("-" * 70 + "\n")
                for file_path, message in errors.items():
                    f.write(f"  {file_path}: {message}\n")
                f.write("\n")

            f.write("=" * 70 + "\n")
            f.write("END OF REPORT\n")
            f.write("=" * 70 + "\n")

        self.logger.info(f"Results written to: {output_path}")

    def _write_single_result(self, f: TextIO, file_path: Path, result: SuccessScoreResult) -> None:
        f.write("-" * 70 + "\n")
        f.write(f"FILE: {file_path.name}\n")
        f.write(f"PATH: {file_path}\n")
        f.write("-" * 70 + "\n")

        f.write(f"Summary: {result.get_summary()}\n")
        f.write(f"Market Potential: {result.market_potential}/100\n")
        f.write(f"Social Score: {result.social_score}/100\n")
        f.write(f"Feature Fit: {result.feature_fit}/100\n")
        f.write(f"Market Data: {result.market_source}\n")

        breakdown = result.breakdown
        f.write("\nBreakdown:\n")
        f.write(f"  Audio Features: {breakdown.audio_features}\n")
        f.write(f"  Market Trends: {breakdown.market_trends}\n")
        f.write(f"  Genre Alignment: {breakdown.genre_alignment}\n")
        f.write(f"  Seasonal Factors: {breakdown.seasonal_factors}\n")

        risk = result.risk_assessment
        f.write(f"\nRisk: {risk.overall_risk.value} ({risk.risk_score}/100)\n")
        for factor in risk.risk_factors:
            f.write(f"  - {factor}\n")
        f.write("  Mitigation:\n")
        for strategy in risk.mitigation_strategies:
            f.write(f"    * {strategy}\n")

        if result.recommendations:
            f.write("\nRecommendations:\n")
            for rec in result.recommendations:
                f.write(
                    f"  [{rec.priority.value.upper()}] {rec.title} "
                    f"({rec.category.value}, impact {rec.impact})\n"
                )
                f.write(f"    {rec.description}\n")
                f.write(f"    How: {rec.implementation}\n")

        f.write("\n")


class JSONResultWriter(ResultWriter):
    """Writes assessments to a JSON file."""

    def __init__(self, indent: int = 2):
        """
        Initialize JSON writer.

        Args:
            indent: JSON indentation level
        """
        self.indent = indent
        self.logger = logging.getLogger("result_writer.json")

    def write(
        self,
        results: ReportResults,
        output_path: Path,
        errors: Optional[ReportErrors] = None,
    ) -> None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        output_data: Dict[str, object] = {
            "generated": datetime.now().isoformat(),
            "total_files": len(results),
            "results": {
                str(path): result.to_dict()
                for path, result in results.items()
            },
            "errors": {str(path): message for path, message in (errors or {}).items()},
        }

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(output_data, f, indent=self.indent, default=str)

        self.logger.info(f"Results written to: {output_path}")


def create_result_writer(format: str = "text", **kwargs) -> ResultWriter:
    """
    Factory function to create appropriate result writer.

    Args:
        format: Output format ("text" or "json")
        **kwargs: Additional arguments for the writer

    Returns:
        Appropriate ResultWriter instance
    """
    writers = {
        "text": TextResultWriter,
        "txt": TextResultWriter,
        "json": JSONResultWriter,
    }

    writer_class = writers.get(format.lower())
    if writer_class is None:
        raise ValueError(f"Unknown format: {format}. Supported: {list(writers.keys())}")

    return writer_class(**kwargs)
