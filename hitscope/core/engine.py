"""
Success analysis engine for HitScope.

Main orchestration engine: decodes audio, runs the feature analyzers in
parallel, synthesizes perceptual features, fetches market trends and
scores the track.
"""

import asyncio
import hashlib
import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from hitscope.analyzers import (
    DynamicsAnalyzer,
    PerceptualSynthesizer,
    create_spectral_analyzer,
    create_temporal_analyzer,
    create_tonal_analyzer,
)
from hitscope.core.cache import CacheManager, create_cache_manager, make_cache_key
from hitscope.core.decoder import (
    WaveformDecoder,
    content_hash,
    create_waveform_decoder,
    estimate_features,
)
from hitscope.core.models import (
    AudioBuffer,
    FeatureSource,
    MarketTrendsSnapshot,
    RawFeatureSet,
    SuccessScoreResult,
    TrackFeatures,
)
from hitscope.market.providers import (
    MarketSignalProvider,
    create_market_provider,
    fetch_market_trends,
)
from hitscope.scoring.assessment import TrackAssessor, market_source_for
from hitscope.scoring.scorer import SuccessScorer
from hitscope.utils.errors import (
    AnalysisError,
    DecodeError,
    FileTooLargeError,
    UnsupportedFormatError,
)
from hitscope.utils.logging import create_logger_with_context

ANALYZER_ORDER: Tuple[str, ...] = ("spectral", "temporal", "tonal", "dynamics")

MarketContext = Tuple[Optional[MarketTrendsSnapshot], str]


def market_fingerprint(snapshot: Optional[MarketTrendsSnapshot]) -> str:
    """Stable digest of a snapshot's content, for cache keys."""
    if snapshot is None:
        return "none"
    payload = json.dumps(snapshot.to_dict(), sort_keys=True)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def _partial_features(
    perceptual: Mapping[str, Any],
    results: Mapping[str, Any],
) -> TrackFeatures:
    """Feature record for a track where at least one analyzer failed."""
    values: Dict[str, Any] = dict(perceptual)

    spectral = results.get("spectral")
    if spectral is not None:
        values.update(
            spectral_centroid=spectral.centroid,
            spectral_rolloff=spectral.rolloff,
            spectral_flatness=spectral.flatness,
            spectral_bandwidth=spectral.bandwidth,
        )
    temporal = results.get("temporal")
    if temporal is not None:
        values.update(
            tempo=temporal.tempo,
            rhythm_strength=temporal.rhythm_strength,
            beat_confidence=temporal.beat_confidence,
        )
    tonal = results.get("tonal")
    if tonal is not None:
        values.update(
            key=tonal.key,
            mode=tonal.mode,
            key_confidence=tonal.key_confidence,
            harmonic_complexity=tonal.harmonic_complexity,
        )
    dynamics = results.get("dynamics")
    if dynamics is not None:
        values.update(
            rms=dynamics.rms,
            loudness=dynamics.loudness,
            dynamic_range=dynamics.dynamic_range,
            crest_factor=dynamics.crest_factor,
        )

    return TrackFeatures.from_mapping(values, source=FeatureSource.ESTIMATED)


class SuccessAnalysisEngine:
    """
    Main analysis engine - orchestrates all components.

    Design:
    - Dependency Injection: All dependencies injected (testable)
    - Parallel Execution: Analyzers run concurrently
    - Caching: Results cached by content hash and scoring context
    - Error Handling: Failed analyzers and undecodable audio degrade to
      estimated features instead of failing the request
    """

    def __init__(
        self,
        decoder: WaveformDecoder,
        spectral_analyzer: Any,
        temporal_analyzer: Any,
        tonal_analyzer: Any,
        dynamics_analyzer: Any,
        synthesizer: Optional[PerceptualSynthesizer] = None,
        assessor: Optional[TrackAssessor] = None,
        market_provider: Optional[MarketSignalProvider] = None,
        market_timeout: float = 5.0,
        cache: Optional[CacheManager] = None,
        max_workers: int = 4,
    ):
        """
        Initialize analysis engine.

        Args:
            decoder: WaveformDecoder instance
            spectral_analyzer: Spectral descriptor analyzer
            temporal_analyzer: Tempo and rhythm analyzer
            tonal_analyzer: Key, mode and harmonic analyzer
            dynamics_analyzer: Level and dynamics analyzer
            synthesizer: Perceptual feature synthesizer
            assessor: Scoring pipeline (scorer, risk, recommendations)
            market_provider: Optional source of market trends
            market_timeout: Seconds to wait for the market provider
            cache: Optional cache manager
            max_workers: Max parallel workers
        """
        self.decoder = decoder
        self.analyzers = {
            'spectral': spectral_analyzer,
            'temporal': temporal_analyzer,
            'tonal': tonal_analyzer,
            'dynamics': dynamics_analyzer,
        }
        self.synthesizer = synthesizer or PerceptualSynthesizer()
        self.assessor = assessor or TrackAssessor()
        self.market_provider = market_provider
        self.market_timeout = market_timeout
        self.cache = cache
        self.executor = ThreadPoolExecutor(max_workers=max_workers)
        self.logger = logging.getLogger('engine')

    # -- feature extraction --------------------------------------------

    def extract_features(self, buffer: AudioBuffer) -> TrackFeatures:
        """
        Run all analyzers in parallel and build the track's feature record.

        A failing analyzer is logged and its outputs replaced by
        defaults; the record is then tagged as estimated.
        """
        log = create_logger_with_context(
            'engine', {"track": (buffer.content_hash or "buffer")[:12]}
        )
        results: Dict[str, Any] = {}

        futures = {
            self.executor.submit(analyzer.analyze, buffer): name
            for name, analyzer in self.analyzers.items()
        }
        for future in as_completed(futures):
            name = futures[future]
            try:
                results[name] = future.result()
                log.debug(f"{name} complete")
            except AnalysisError as e:
                log.error(f"{name} failed, using defaults: {e}")
                results[name] = None

        perceptual = self.synthesizer.synthesize(
            spectral=results.get('spectral'),
            temporal=results.get('temporal'),
            tonal=results.get('tonal'),
            dynamics=results.get('dynamics'),
        )

        if all(results.get(name) is not None for name in ANALYZER_ORDER):
            raw = RawFeatureSet.from_components(
                buffer,
                results['spectral'],
                results['temporal'],
                results['tonal'],
                results['dynamics'],
            )
            return TrackFeatures.from_analysis(raw, perceptual)

        return _partial_features(perceptual.to_dict(), results)

    # -- market trends -------------------------------------------------

    async def resolve_market_async(
        self,
        market_trends: Optional[MarketTrendsSnapshot] = None,
    ) -> MarketContext:
        """Explicit trends win; otherwise ask the provider once, with a timeout."""
        if market_trends is not None:
            return market_trends, market_source_for(market_trends)
        return await fetch_market_trends(self.market_provider, self.market_timeout)

    def resolve_market(
        self,
        market_trends: Optional[MarketTrendsSnapshot] = None,
    ) -> MarketContext:
        """
        Blocking variant of resolve_market_async.

        Must not be called from a running event loop; use the async
        methods there instead.
        """
        if market_trends is not None or self.market_provider is None:
            return market_trends, market_source_for(market_trends)
        return asyncio.run(self.resolve_market_async())

    # -- scoring -------------------------------------------------------

    def _score(
        self,
        features: TrackFeatures,
        market: MarketContext,
        genre: Optional[str],
        release_date: Optional[date],
        is_released: bool,
        as_of: Optional[date],
        source: Optional[str],
    ) -> SuccessScoreResult:
        snapshot, market_source = market
        return self.assessor.assess(
            features,
            genre=genre,
            release_date=release_date,
            market_trends=snapshot,
            is_released=is_released,
            as_of=as_of or date.today(),
            source=source,
            market_source=market_source,
        )

    def _cache_key(
        self,
        digest: Optional[str],
        market: MarketContext,
        genre: Optional[str],
        release_date: Optional[date],
        is_released: bool,
        as_of: Optional[date],
    ) -> Optional[str]:
        if self.cache is None or not digest:
            return None
        snapshot, market_source = market
        return make_cache_key(
            digest,
            genre=genre,
            release_date=release_date,
            is_released=is_released,
            as_of=as_of or date.today(),
            market_fingerprint=f"{market_source}:{market_fingerprint(snapshot)}",
        )

    def _analyze_buffer(
        self,
        buffer: AudioBuffer,
        market: MarketContext,
        genre: Optional[str],
        release_date: Optional[date],
        is_released: bool,
        as_of: Optional[date],
    ) -> SuccessScoreResult:
        start_time = time.perf_counter()

        key = self._cache_key(buffer.content_hash, market, genre, release_date, is_released, as_of)
        if key is not None:
            cached = self.cache.get(key)
            if cached is not None:
                self.logger.info(f"Cache hit: {buffer.content_hash[:8]}...")
                return replace(cached, source=buffer.source)

        self.logger.info(f"Analyzing {buffer.source or 'buffer'} ({buffer.duration:.1f}s)")
        features = self.extract_features(buffer)
        result = self._score(
            features, market, genre, release_date, is_released, as_of, buffer.source
        )

        if key is not None:
            self.cache.set(key, result)

        self.logger.info(
            f"Analysis complete in {time.perf_counter() - start_time:.3f}s: "
            f"{result.get_summary()}"
        )
        return result

    def _analyze_bytes(
        self,
        data: bytes,
        market: MarketContext,
        genre: Optional[str],
        release_date: Optional[date],
        is_released: bool,
        as_of: Optional[date],
        source: Optional[str],
    ) -> SuccessScoreResult:
        try:
            buffer = self.decoder.decode(data, source=source)
        except DecodeError as e:
            self.logger.warning(f"Could not decode {source or 'audio'}, using estimated features: {e}")
            return self._analyze_estimated(
                data, market, genre, release_date, is_released, as_of, source
            )

        return self._analyze_buffer(buffer, market, genre, release_date, is_released, as_of)

    def _analyze_estimated(
        self,
        data: bytes,
        market: MarketContext,
        genre: Optional[str],
        release_date: Optional[date],
        is_released: bool,
        as_of: Optional[date],
        source: Optional[str],
    ) -> SuccessScoreResult:
        """Score undecodable audio from features estimated from its bytes."""
        digest = content_hash(data) if data else None
        key = self._cache_key(digest, market, genre, release_date, is_released, as_of)
        if key is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return replace(cached, source=source)
        result = self._score(
            estimate_features(data), market, genre, release_date, is_released, as_of, source
        )
        if key is not None:
            self.cache.set(key, result)
        return result

    def _analyze_file(
        self,
        file_path: Path,
        market: MarketContext,
        genre: Optional[str],
        release_date: Optional[date],
        is_released: bool,
        as_of: Optional[date],
    ) -> SuccessScoreResult:
        self.logger.info(f"Loading audio: {file_path}")
        try:
            buffer = self.decoder.decode_file(file_path)
        except (UnsupportedFormatError, FileTooLargeError):
            raise
        except DecodeError as e:
            self.logger.warning(f"Could not decode {file_path}, using estimated features: {e}")
            return self._analyze_estimated(
                file_path.read_bytes(), market, genre, release_date, is_released, as_of,
                str(file_path),
            )
        return self._analyze_buffer(buffer, market, genre, release_date, is_released, as_of)

    # -- public API ----------------------------------------------------

    def analyze_buffer(
        self,
        buffer: AudioBuffer,
        genre: Optional[str] = None,
        release_date: Optional[date] = None,
        market_trends: Optional[MarketTrendsSnapshot] = None,
        is_released: bool = False,
        as_of: Optional[date] = None,
    ) -> SuccessScoreResult:
        """
        Score decoded PCM audio.

        Args:
            buffer: Decoded audio
            genre: Declared genre
            release_date: Planned or actual release date
            market_trends: Snapshot to use instead of the configured provider
            is_released: Whether the track is already released
            as_of: Current date for timing advice (defaults to today)

        Returns:
            SuccessScoreResult: Complete assessment
        """
        market = self.resolve_market(market_trends)
        return self._analyze_buffer(buffer, market, genre, release_date, is_released, as_of)

    def analyze_bytes(
        self,
        data: bytes,
        genre: Optional[str] = None,
        release_date: Optional[date] = None,
        market_trends: Optional[MarketTrendsSnapshot] = None,
        is_released: bool = False,
        as_of: Optional[date] = None,
        source: Optional[str] = None,
    ) -> SuccessScoreResult:
        """
        Score encoded audio bytes.

        Never raises DecodeError: undecodable input is scored from
        estimated features and tagged as such.
        """
        market = self.resolve_market(market_trends)
        return self._analyze_bytes(
            data, market, genre, release_date, is_released, as_of, source
        )

    def analyze_file(
        self,
        file_path: Path,
        genre: Optional[str] = None,
        release_date: Optional[date] = None,
        market_trends: Optional[MarketTrendsSnapshot] = None,
        is_released: bool = False,
        as_of: Optional[date] = None,
    ) -> SuccessScoreResult:
        """
        Score an audio file.

        Raises:
            FileNotFoundError: File doesn't exist
            UnsupportedFormatError: File format not supported
            FileTooLargeError: File exceeds size limit

        Content that cannot be decoded is scored from estimated features.
        """
        market = self.resolve_market(market_trends)
        return self._analyze_file(
            Path(file_path), market, genre, release_date, is_released, as_of
        )

    def analyze_batch(
        self,
        file_paths: List[Path],
        genre: Optional[str] = None,
        release_date: Optional[date] = None,
        market_trends: Optional[MarketTrendsSnapshot] = None,
        is_released: bool = False,
        as_of: Optional[date] = None,
    ) -> Tuple[Dict[Path, SuccessScoreResult], Dict[Path, str]]:
        """
        Score multiple files against one market snapshot.

        Files are processed in order; each file's analyzers still run in
        parallel.

        Returns:
            (results, errors): results by path, and error messages for
            files that could not be analyzed
        """
        self.logger.info(f"Analyzing batch of {len(file_paths)} files")
        market = self.resolve_market(market_trends)

        results: Dict[Path, SuccessScoreResult] = {}
        errors: Dict[Path, str] = {}
        for path in file_paths:
            path = Path(path)
            try:
                results[path] = self._analyze_file(
                    path, market, genre, release_date, is_released, as_of
                )
            except (OSError, DecodeError, AnalysisError) as e:
                self.logger.error(f"Failed to analyze {path}: {e}")
                errors[path] = str(e)

        return results, errors

    async def analyze_bytes_async(
        self,
        data: bytes,
        genre: Optional[str] = None,
        release_date: Optional[date] = None,
        market_trends: Optional[MarketTrendsSnapshot] = None,
        is_released: bool = False,
        as_of: Optional[date] = None,
        source: Optional[str] = None,
    ) -> SuccessScoreResult:
        """Async variant of analyze_bytes; analysis runs off the event loop."""
        market = await self.resolve_market_async(market_trends)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            self._analyze_bytes,
            data, market, genre, release_date, is_released, as_of, source,
        )

    async def analyze_file_async(
        self,
        file_path: Path,
        genre: Optional[str] = None,
        release_date: Optional[date] = None,
        market_trends: Optional[MarketTrendsSnapshot] = None,
        is_released: bool = False,
        as_of: Optional[date] = None,
    ) -> SuccessScoreResult:
        """Async variant of analyze_file."""
        market = await self.resolve_market_async(market_trends)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            self._analyze_file,
            Path(file_path), market, genre, release_date, is_released, as_of,
        )

    def shutdown(self) -> None:
        """Shutdown thread pool gracefully."""
        self.logger.info("Shutting down analysis engine")
        self.executor.shutdown(wait=True)

    def __enter__(self) -> "SuccessAnalysisEngine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()


def create_analysis_engine(config: Dict[str, Any]) -> SuccessAnalysisEngine:
    """
    Factory function to create fully configured analysis engine.

    Args:
        config: Configuration dict

    Returns:
        SuccessAnalysisEngine: Configured engine
    """
    scoring_config = config.get('scoring', {})
    assessor = TrackAssessor(
        scorer=SuccessScorer(
            estimated_confidence_factor=scoring_config.get('estimated_confidence_factor', 0.5)
        )
    )

    return SuccessAnalysisEngine(
        decoder=create_waveform_decoder(config),
        spectral_analyzer=create_spectral_analyzer(config),
        temporal_analyzer=create_temporal_analyzer(config),
        tonal_analyzer=create_tonal_analyzer(config),
        dynamics_analyzer=DynamicsAnalyzer(),
        assessor=assessor,
        market_provider=create_market_provider(config),
        market_timeout=config.get('market', {}).get('timeout', 5.0),
        cache=create_cache_manager(config),
        max_workers=config.get('performance', {}).get('max_workers', 4),
    )
