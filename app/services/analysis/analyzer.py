"""Transcript analysis: fill the prompt, call the model, normalize the reply."""

import structlog

from app.core.config import Settings, settings as default_settings
from app.core.logging import preview
from app.models.analysis import AnalysisResult
from app.services.analysis.backends import LLMBackend, resolve_backend
from app.services.analysis.exceptions import LLMBackendError, LLMResponseError
from app.services.analysis.normalizer import normalize_analysis, parse_llm_json
from app.services.analysis.prompts import fill_prompt, load_prompt_template

logger = structlog.get_logger(__name__)


class TranscriptAnalyzer:
    """Runs one transcript through the configured LLM backend."""

    def __init__(self, backend: LLMBackend, template: str):
        self.backend = backend
        self.template = template

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "TranscriptAnalyzer":
        """Build from configuration.

        Raises:
            ConfigurationError: missing template, unknown model or missing credentials
        """
        settings = settings or default_settings
        template = load_prompt_template(settings.prompt_library_path, settings.prompt_name)
        backend = resolve_backend(settings.llm_model, settings)
        return cls(backend, template)

    async def analyze(
        self,
        video_id: str,
        transcript: str,
        title: str,
    ) -> AnalysisResult | list[AnalysisResult] | None:
        """Analyze a transcript.

        Returns:
            One record for a video, a list for a web page, or None when the
            transcript is empty or the model reply cannot be used
        """
        if not transcript or not transcript.strip():
            logger.warning("analysis_skipped_empty_transcript", video_id=video_id)
            return None

        logger.info("analysis_started", video_id=video_id, transcript_length=len(transcript))
        logger.debug("transcript_preview", video_id=video_id, preview=preview(transcript))

        prompt = fill_prompt(self.template, title=title, transcript=transcript, video_id=video_id)

        try:
            content = await self.backend.generate(prompt)
            logger.debug("llm_reply", video_id=video_id, reply=preview(content))
            parsed = parse_llm_json(content)
        except (LLMBackendError, LLMResponseError) as e:
            logger.error("analysis_failed", video_id=video_id, error=str(e))
            return None

        result = normalize_analysis(video_id, parsed)
        if result is None:
            logger.warning("analysis_empty", video_id=video_id)
        else:
            logger.info(
                "analysis_completed",
                video_id=video_id,
                records=len(result) if isinstance(result, list) else 1,
            )
        return result
