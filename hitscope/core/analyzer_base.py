"""
Analyzer base interface for HitScope.

Defines the contract for the feature analyzers using Protocol
(structural subtyping) plus a Template Method base class.
"""

import logging
import time
from abc import abstractmethod
from typing import Generic, Protocol, TypeVar

from hitscope.core.models import AudioBuffer
from hitscope.utils.errors import AnalysisError

T = TypeVar('T')
T_co = TypeVar('T_co', covariant=True)


class Analyzer(Protocol[T_co]):
    """
    Protocol satisfied by every feature analyzer.

    A class doesn't need to inherit from Analyzer to be compatible; it
    just needs ``name``, ``version`` and ``analyze(buffer)``.
    """

    @property
    def name(self) -> str:
        """Analyzer name (e.g., 'spectral', 'tonal')."""
        ...

    @property
    def version(self) -> str:
        """Analyzer version for result tracking."""
        ...

    def analyze(self, buffer: AudioBuffer) -> T_co:
        """
        Analyze a PCM buffer and return a typed feature record.

        Raises:
            AnalysisError: If analysis fails
        """
        ...


class BaseAnalyzer(Generic[T]):
    """
    Base class providing timing, logging and error wrapping.

    Uses Template Method pattern - analyze() provides the template,
    subclasses implement _analyze_impl(). Analyzers hold configuration
    only, never per-buffer state, so one instance can serve concurrent
    requests.
    """

    def __init__(self, name: str, version: str):
        self._name = name
        self._version = version
        self.logger = logging.getLogger(f"analyzer.{name}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def version(self) -> str:
        return self._version

    def analyze(self, buffer: AudioBuffer) -> T:
        """
        Template method with timing and error handling.

        Args:
            buffer: Decoded PCM buffer

        Returns:
            T: Analyzer-specific feature record

        Raises:
            AnalysisError: If analysis fails
        """
        start_time = time.perf_counter()

        try:
            self.logger.debug(
                "Starting analysis: %s (%d samples @ %d Hz)",
                buffer.source or "<buffer>", buffer.num_samples, buffer.sample_rate,
            )

            result = self._analyze_impl(buffer)

            elapsed = time.perf_counter() - start_time
            self.logger.debug(f"Analysis complete in {elapsed:.3f}s")

            return result

        except AnalysisError:
            raise

        except Exception as e:
            self.logger.error(f"Analysis failed: {e}")
            raise AnalysisError(
                f"{self.name} analysis failed: {e}",
                analyzer_name=self.name,
                original_error=e
            ) from e

    @abstractmethod
    def _analyze_impl(self, buffer: AudioBuffer) -> T:
        """Subclasses implement actual analysis logic."""
        raise NotImplementedError
