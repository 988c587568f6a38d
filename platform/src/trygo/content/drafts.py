"""Draft generator for blog, commercial and FAQ pieces."""

from __future__ import annotations

import logging
import time

from trygo.content.base import (
    CATEGORY_ANGLES,
    BaseGenerator,
    GeneratedDraft,
    GenerationRequest,
)
from trygo.content.parser import parse_body, parse_draft
from trygo.llm.prompts import render

logger = logging.getLogger(__name__)


class DraftGenerator(BaseGenerator):
    """Writes a full draft for a backlog idea and rewrites existing drafts."""

    def get_system_prompt(self, request: GenerationRequest) -> str:
        ctx = request.context
        return render(
            "content_draft.j2",
            project_title=ctx.project_title,
            hypothesis_title=ctx.hypothesis_title,
            hypothesis_description=ctx.hypothesis_description,
            persona=ctx.persona,
            pains=ctx.pains,
            goals=ctx.goals,
            triggers=ctx.triggers,
            problems=ctx.problems,
            solutions=ctx.solutions,
            unique_value_proposition=ctx.unique_value_proposition,
            cluster=request.cluster,
            format=request.format.value,
            angle=CATEGORY_ANGLES[request.category],
            language=ctx.language,
        )

    def generate(self, request: GenerationRequest) -> GeneratedDraft:
        start = time.time()
        system_prompt = self.get_system_prompt(request)

        user_message = f"Write the piece titled: {request.title}"
        if request.description:
            user_message += f"\n\nBrief:\n{request.description}"
        if request.prompt_part:
            user_message += f"\n\nAdditional instructions:\n{request.prompt_part}"

        response = self._client.generate(
            system=system_prompt,
            messages=[{"role": "user", "content": user_message}],
        )
        draft = parse_draft(response, fallback_title=request.title)
        draft.metadata.update(
            {
                "word_count": len(draft.body.split()),
                "generation_time_seconds": round(time.time() - start, 2),
                "token_usage": self._client.usage_summary,
            }
        )
        logger.info(
            "Generated %s draft %r (%d words, %s)",
            request.format.value,
            draft.title,
            draft.metadata["word_count"],
            draft.metadata["parse_mode"],
        )
        return draft

    def regenerate(
        self, request: GenerationRequest, existing_body: str, outline: str = ""
    ) -> str:
        """Rewrite an existing body following ``request.prompt_part``."""
        ctx = request.context
        system_prompt = render(
            "regenerate.j2",
            project_title=ctx.project_title,
            persona=ctx.persona,
            title=request.title,
            outline=outline,
            language=ctx.language,
        )
        instruction = request.prompt_part or "Improve clarity, flow and specificity."
        user_message = (
            f"Editor's instruction:\n{instruction}\n\n"
            f"Current article:\n{existing_body}"
        )
        response = self._client.generate(
            system=system_prompt,
            messages=[{"role": "user", "content": user_message}],
        )
        return parse_body(response)
