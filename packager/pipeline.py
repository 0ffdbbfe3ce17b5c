from __future__ import annotations

import logging
import os
import platform as host_platform
import sys
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum, auto
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from . import __version__
from .archive import extract_zip
from .builders import PlatformBuilder, default_builders
from .download import ArtifactFetcher
from .errors import (
    AcquisitionError,
    BuildError,
    CombinationError,
    ExtractionError,
    FileSystemError,
    HookError,
    InferenceError,
    PackagerError,
    PackagingError,
    ValidationError,
)
from .metadata import (
    DescriptorReader,
    VersionResolver,
    read_descriptor,
    resolve_installed_version,
    resolve_name_and_version,
)
from .models import BEST_EFFORT, FAIL_FAST, Combination, PackagingRequest, PipelineResult, RunReport
from .staging import StagingArea
from .targets import SupportedTargets, enumerate_combinations, is_platform_mac
from .utils import remove_path

logger = logging.getLogger(__name__)

Extractor = Callable[[Path, Path], Any]

DEFAULT_IGNORES = (
    "/node_modules/electron($|/)",
    "/node_modules/electron-prebuilt($|/)",
    "/node_modules/electron-packager($|/)",
    "/\\.git($|/)",
    "/node_modules/\\.bin($|/)",
)

INFERENCE_HELP = (
    "Unable to determine application name or Electron version. "
    "Please specify an application name and Electron version.\n\n"
    "Pass `name` and `version` in the request (or `--name`/`--version` on the "
    "command line), or declare an `electron` dependency in package.json.\n\n"
)


class Stage(Enum):
    PENDING = auto()
    DOWNLOADING = auto()
    FINALIZING = auto()
    EXTRACTING = auto()
    POST_HOOKS = auto()
    BUILDING = auto()
    DONE = auto()
    SKIPPED = auto()
    FAILED = auto()


class _Skip(Exception):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class CombinationPipeline:
    """Runs download -> extract -> hooks -> build for one (platform, arch)."""

    def __init__(
        self,
        request: PackagingRequest,
        combination: Combination,
        *,
        staging: StagingArea,
        fetcher: Any,
        extractor: Extractor,
        builder: PlatformBuilder,
    ) -> None:
        self.request = request
        self.combination = combination
        self.staging = staging
        self.fetcher = fetcher
        self.extractor = extractor
        self.builder = builder
        self.options = request.for_combination(combination.platform, combination.arch)
        self.stage = Stage.PENDING

    def _enter(self, stage: Stage) -> None:
        logger.debug("%s: %s -> %s", self.combination.key, self.stage.name, stage.name)
        self.stage = stage

    def run(self) -> PipelineResult:
        try:
            final_path = self._run()
        except _Skip as skip:
            self._enter(Stage.SKIPPED)
            return PipelineResult.skipped(self.combination, skip.reason)
        except PackagerError as exc:
            self._enter(Stage.FAILED)
            return PipelineResult.failed(self.combination, exc)
        self._enter(Stage.DONE)
        return PipelineResult.completed(self.combination, final_path)

    def _run(self) -> str:
        platform, arch = self.combination.platform, self.combination.arch
        if is_platform_mac(platform) and not self.staging.supports_symlinks():
            logger.warning("Cannot create symlinks; skipping %s platform", platform)
            raise _Skip("symlinks-unsupported")

        self._enter(Stage.DOWNLOADING)
        archive = self._guard(
            AcquisitionError,
            lambda: self.fetcher.fetch(platform, arch, self.combination.version),
        )

        if self.staging.enabled:
            self._enter(Stage.FINALIZING)
            self._check_overwrite()

        self._enter(Stage.EXTRACTING)
        build_dir = self.staging.prepare(self.combination)
        logger.info(
            "Packaging app for platform %s %s using electron v%s",
            platform,
            arch,
            self.combination.version,
        )
        self._guard(ExtractionError, lambda: self.extractor(Path(archive), build_dir))

        self._enter(Stage.POST_HOOKS)
        for hook in self.request.after_extract:
            self._guard(
                HookError,
                lambda: hook(str(build_dir), self.combination.version, platform, arch),
            )

        self._enter(Stage.BUILDING)
        return str(self._guard(BuildError, lambda: self.builder.build(self.options, build_dir)))

    def _check_overwrite(self) -> None:
        final_path = self.builder.final_path(self.options)
        if not final_path.exists():
            return
        if not self.request.overwrite:
            logger.warning(
                "Skipping %s %s (output dir already exists, use --overwrite to force)",
                self.combination.platform,
                self.combination.arch,
            )
            raise _Skip("output-exists")
        logger.debug("Removing existing output %s", final_path)
        try:
            remove_path(final_path)
        except OSError as exc:
            raise FileSystemError(f"Unable to remove {final_path}: {exc}") from exc

    def _guard(self, error_type: type, step: Callable[[], Any]) -> Any:
        try:
            return step()
        except CombinationError as exc:
            if exc.platform is None:
                exc.platform, exc.arch = self.combination.platform, self.combination.arch
            raise
        except PackagerError:
            raise
        except Exception as exc:
            raise error_type(
                f"{self.combination.key}: {exc}",
                platform=self.combination.platform,
                arch=self.combination.arch,
            ) from exc


def _debug_host_info() -> None:
    logger.debug("Electron Packager %s", __version__)
    logger.debug("Python %s", sys.version.split()[0])
    logger.debug("Host Operating system: %s (%s)", sys.platform, host_platform.machine())


def merge_ignores(ignore: Any) -> Any:
    """Append the default ignore patterns unless ``ignore`` is a predicate."""

    if callable(ignore):
        return ignore
    if not ignore:
        patterns: List[str] = []
    elif isinstance(ignore, str):
        patterns = [ignore]
    else:
        patterns = list(ignore)
    return patterns + list(DEFAULT_IGNORES)


class Packager:
    """Expands a request into combinations and drives their pipelines."""

    def __init__(
        self,
        *,
        targets: Optional[SupportedTargets] = None,
        fetcher: Any = None,
        extractor: Extractor = extract_zip,
        builders: Optional[Mapping[str, PlatformBuilder]] = None,
        descriptor_reader: DescriptorReader = read_descriptor,
        version_resolver: VersionResolver = resolve_installed_version,
    ) -> None:
        self.targets = targets or SupportedTargets.default()
        self.fetcher = fetcher
        self.extractor = extractor
        self.builders: Dict[str, PlatformBuilder] = dict(
            builders or default_builders(self.targets.platforms.values())
        )
        self.descriptor_reader = descriptor_reader
        self.version_resolver = version_resolver

    def resolve(self, request: PackagingRequest) -> List[Combination]:
        """Validate and complete ``request`` in place, returning its combinations."""

        _debug_host_info()
        arch_selector = "all" if request.all else request.arch
        platform_selector = "all" if request.all else request.platform
        archs = self.targets.validate_archs(arch_selector)
        platforms = self.targets.validate_platforms(platform_selector)
        logger.debug("Target Platforms: %s", ", ".join(platforms))
        logger.debug("Target Architectures: %s", ", ".join(archs))

        try:
            resolve_name_and_version(
                request,
                request.dir or os.getcwd(),
                descriptor_reader=self.descriptor_reader,
                version_resolver=self.version_resolver,
            )
            if not request.name:
                raise InferenceError("no application name could be inferred")
            if not request.version:
                raise InferenceError("no Electron version could be inferred")
        except (InferenceError, OSError, ValueError) as exc:
            raise InferenceError(INFERENCE_HELP + str(exc)) from exc
        logger.debug("Application name: %s", request.name)
        logger.debug("Target Electron version: %s", request.version)

        request.ignore = merge_ignores(request.ignore)
        if not callable(request.ignore):
            logger.debug(
                "Ignored path regular expressions:\n%s",
                "\n".join(f"* {pattern}" for pattern in request.ignore),
            )

        return enumerate_combinations(archs, platforms, request.version, request.download)

    def builder_for(self, platform: str) -> PlatformBuilder:
        builder_id = self.targets.builder_id(platform)
        try:
            return self.builders[builder_id]
        except KeyError as exc:
            raise ValidationError(f"No builder configured for platform {platform}") from exc

    def package(self, request: PackagingRequest) -> RunReport:
        if request.mode not in (FAIL_FAST, BEST_EFFORT):
            raise ValidationError(f"Unsupported mode {request.mode}; must be one of: {FAIL_FAST}, {BEST_EFFORT}")
        combinations = self.resolve(request)
        fetcher = self.fetcher or ArtifactFetcher.from_options(request.download)
        staging = StagingArea(request.tmpdir, request.out)
        pipelines = [
            CombinationPipeline(
                request,
                combination,
                staging=staging,
                fetcher=fetcher,
                extractor=self.extractor,
                builder=self.builder_for(combination.platform),
            )
            for combination in combinations
        ]

        # Barrier: no pipeline starts before the stale staging root is gone.
        staging.clear()

        fail_fast = request.mode == FAIL_FAST
        if request.jobs and request.jobs > 1:
            results = self._run_parallel(pipelines, request.jobs, fail_fast)
        else:
            results = self._run_sequential(pipelines, fail_fast)

        report = RunReport(results)
        if report.failures:
            errors = [result.error for result in report.failures]
            if fail_fast:
                raise errors[0]
            raise PackagingError(errors, report.app_paths)
        return report

    def _run_sequential(self, pipelines: List[CombinationPipeline], fail_fast: bool) -> List[PipelineResult]:
        results: List[PipelineResult] = []
        for pipeline in pipelines:
            result = pipeline.run()
            results.append(result)
            if fail_fast and not result.ok:
                break
        return results

    def _run_parallel(
        self, pipelines: List[CombinationPipeline], jobs: int, fail_fast: bool
    ) -> List[PipelineResult]:
        results: List[PipelineResult] = []
        with ThreadPoolExecutor(max_workers=jobs) as executor:
            futures: List[Future] = [executor.submit(pipeline.run) for pipeline in pipelines]
            for index, future in enumerate(futures):
                result = future.result()
                results.append(result)
                if fail_fast and not result.ok:
                    for pending in futures[index + 1:]:
                        pending.cancel()
                    break
        return results


def package(request: Union[PackagingRequest, Mapping[str, Any]], **collaborators: Any) -> List[str]:
    """Package an app and return the ordered list of bundle paths (skips omitted)."""

    if not isinstance(request, PackagingRequest):
        request = PackagingRequest.from_dict(dict(request))
    return Packager(**collaborators).package(request).app_paths
