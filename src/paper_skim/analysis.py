"""Paper analysis, annotation answers and chat through the reasoning model."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Sequence

from .config import LimitsConfig, ModelConfig, PricingConfig
from .errors import AnalysisError, AnalysisErrorKind
from .interfaces import TransportInterface, UsageLedgerInterface
from .ledger import estimate_cost
from .models import (
    ActionKind,
    AnalysisRequest,
    AnalysisTask,
    AssistantReply,
    Category,
    ChatTurn,
    PaperAnalysis,
)
from .normalize import parse_analysis

logger = logging.getLogger(__name__)

ANALYSIS_TRUNCATION_MARKER = "\n\n[Content truncated due to length...]"
CONTEXT_TRUNCATION_MARKER = "\n\n[Content truncated...]"

ANALYSIS_PROMPT = """Analyze this research paper and return a JSON object with the following fields:

- "summary": A 2-3 paragraph summary of the paper covering the main objectives, methods, and conclusions.
- "rating": An integer from 1-10 based on methodology quality, novelty, and significance.
- "category": One of: {categories}.
- "tags": An array of 3-5 relevant keywords as strings.
- "keyFindings": An array of 3-5 key findings, each as a concise sentence string.

Return ONLY valid JSON, no additional text or markdown formatting.

Paper content:

{text}"""

ANNOTATION_PROMPT = """You are a research assistant. A user is reading a research paper and has a question.

Paper context (may be truncated):
{text}

The user highlighted this text:
"{excerpt}"

Their question/note:
{question}

Provide a helpful, concise response that draws on the paper content and your knowledge. Keep it to 2-3 paragraphs maximum."""

CHAT_SYSTEM_PROMPT = (
    "You are a research assistant helping a user understand a research paper. "
    "Be concise, accurate, and helpful.\n\nPaper content:\n{text}"
)


def truncate(text: str, max_chars: int, marker: str) -> str:
    """Clip `text` to `max_chars` characters and append `marker` when clipped.

    The marker is not counted against the ceiling.
    """

    if len(text) <= max_chars:
        return text
    return text[:max_chars] + marker


def build_messages(request: AnalysisRequest) -> tuple[str, list[dict]]:
    """Return the system prompt and message list for one request."""

    if request.task is AnalysisTask.FULL_ANALYSIS:
        categories = ", ".join(f'"{item.value}"' for item in Category)
        prompt = ANALYSIS_PROMPT.format(categories=categories, text=request.text)
        return "", [{"role": "user", "content": prompt}]

    if request.task is AnalysisTask.ANNOTATION:
        prompt = ANNOTATION_PROMPT.format(
            text=request.text,
            excerpt=request.excerpt,
            question=request.question,
        )
        return "", [{"role": "user", "content": prompt}]

    system_prompt = CHAT_SYSTEM_PROMPT.format(text=request.text)
    return system_prompt, [{"role": turn.role, "content": turn.content} for turn in request.turns]


class PaperAnalyst:
    """Run analysis requests and record the spend of every billed call."""

    def __init__(
        self,
        transport: TransportInterface,
        ledger: UsageLedgerInterface,
        model: ModelConfig | None = None,
        limits: LimitsConfig | None = None,
        pricing: PricingConfig | None = None,
    ):
        self.transport = transport
        self.ledger = ledger
        self.model = model or ModelConfig()
        self.limits = limits or LimitsConfig()
        self.pricing = pricing or PricingConfig()

    def analyze_document(self, text: str, actor_id: str) -> PaperAnalysis:
        """Summarize, rate, categorize and tag a full paper.

        Raises:
            AnalysisError: From the transport.
            ParseError: When the billed reply holds no JSON object.
        """

        request = AnalysisRequest(
            task=AnalysisTask.FULL_ANALYSIS,
            text=truncate(text, self.limits.analysis_max_chars, ANALYSIS_TRUNCATION_MARKER),
        )
        raw, cost = self._complete(
            request,
            actor_id=actor_id,
            action=ActionKind.PAPER_ANALYSIS,
            max_tokens=self.model.analysis_max_tokens,
        )
        return parse_analysis(raw, cost_estimate=cost)

    def answer_annotation(
        self,
        text: str,
        selected_excerpt: str,
        question: str,
        actor_id: str,
    ) -> AssistantReply:
        request = AnalysisRequest(
            task=AnalysisTask.ANNOTATION,
            text=truncate(text, self.limits.context_max_chars, CONTEXT_TRUNCATION_MARKER),
            excerpt=selected_excerpt,
            question=question,
        )
        raw, cost = self._complete(
            request,
            actor_id=actor_id,
            action=ActionKind.ANNOTATION_QUERY,
            max_tokens=self.model.annotation_max_tokens,
        )
        return AssistantReply(response_text=raw, cost_estimate=cost)

    def chat(self, text: str, prior_turns: Sequence[ChatTurn], actor_id: str) -> AssistantReply:
        """Continue a conversation about a paper.

        The turns are replayed in order and must end with a user turn.
        """

        turns = tuple(prior_turns)
        if not turns:
            raise ValueError("Chat needs at least one turn")
        if turns[-1].role != "user":
            raise ValueError("The last chat turn must come from the user")

        request = AnalysisRequest(
            task=AnalysisTask.CHAT,
            text=truncate(text, self.limits.context_max_chars, CONTEXT_TRUNCATION_MARKER),
            turns=turns,
        )
        raw, cost = self._complete(
            request,
            actor_id=actor_id,
            action=ActionKind.CHAT_QUERY,
            max_tokens=self.model.chat_max_tokens,
        )
        return AssistantReply(response_text=raw, cost_estimate=cost)

    def _complete(
        self,
        request: AnalysisRequest,
        actor_id: str,
        action: ActionKind,
        max_tokens: int,
    ) -> tuple[str, Decimal]:
        system_prompt, messages = build_messages(request)
        reply = self.transport.complete(
            model=self.model.model_name,
            messages=messages,
            max_tokens=max_tokens,
            system_prompt=system_prompt,
        )

        # Billed from here on: record before anything else can fail.
        cost = estimate_cost(reply.input_tokens, reply.output_tokens, self.pricing)
        self.ledger.record(actor_id, action, cost)
        logger.info(
            "%s for %s: %d in / %d out tokens, $%s",
            action.value,
            actor_id,
            reply.input_tokens,
            reply.output_tokens,
            cost,
        )
        if not reply.readable:
            raise AnalysisError(
                "Reasoning model reply has no text content",
                kind=AnalysisErrorKind.MALFORMED,
            )
        return reply.text, cost
