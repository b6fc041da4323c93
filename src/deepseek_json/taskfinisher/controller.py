"""TaskFinisher state machine: clarifying rounds ending in a final artifact."""

from __future__ import annotations

import logging
from typing import NamedTuple

from deepseek_json.api.client import ChatEngine
from deepseek_json.api.errors import ChatError
from deepseek_json.api.models import (
    ChatRequest,
    ClarifyingBatch,
    FinalArtifact,
    ParsedResponse,
    ParseMode,
    Role,
)
from deepseek_json.api.parser import parse_response
from deepseek_json.cancellation import CancellationSource
from deepseek_json.config import Settings
from deepseek_json.console.base import ConsoleIO, ProgressStage
from deepseek_json.prompts import (
    FORCED_FINALIZATION_PROMPT,
    build_answers_message,
    build_seed_prompt,
    build_system_prompt,
    clamp_max_questions,
)
from deepseek_json.taskfinisher.models import (
    ABORT_COMMANDS,
    AbortReason,
    AnswerCommand,
    ConversationOutcome,
    ConversationState,
    Phase,
    classify_answer,
)

logger = logging.getLogger(__name__)


class _AnswerRound(NamedTuple):
    answers: list[tuple[str, str]]
    proceed: bool
    aborted: bool


class ConversationController:
    """Drive one TaskFinisher conversation from seed request to outcome.

    The controller owns its `ConversationState` for the whole run. Every
    suspension point (console read, request, backoff) is raced against the
    shared cancellation source, and a fired cancellation ends the run in
    ABORTED with reason CANCELED without any further request.
    """

    def __init__(
        self,
        engine: ChatEngine,
        console: ConsoleIO,
        settings: Settings,
        cancellation: CancellationSource,
    ) -> None:
        self.engine = engine
        self.console = console
        self.settings = settings
        self.cancellation = cancellation
        self.state = ConversationState(
            max_questions=clamp_max_questions(settings.effective_max_questions),
        )

    async def run(self, seed_query: str | None = None) -> ConversationOutcome:
        """Run the dialogue; `seed_query` skips the initial console prompt."""

        try:
            return await self._drive(seed_query)
        except ChatError as error:
            if error.is_canceled:
                logger.debug("TaskFinisher canceled in phase %s", self.state.phase.value)
                return self._abort(AbortReason.CANCELED, error)
            self.console.display_error(error)
            return self._abort(AbortReason.ERROR, error)

    async def _drive(self, seed_query: str | None) -> ConversationOutcome:
        state = self.state
        seed = seed_query.strip() if seed_query else await self._read_seed()
        if not seed or seed.lower() in ABORT_COMMANDS:
            return self._abort(AbortReason.USER_ABORT)

        state.append(Role.SYSTEM, build_system_prompt(state.max_questions))
        state.append(Role.USER, build_seed_prompt(seed))
        response = await self._exchange(ProgressStage.SENDING)

        while True:
            self.cancellation.raise_if_fired()
            if isinstance(response, FinalArtifact):
                return self._finish(response)
            if not isinstance(response, ClarifyingBatch):
                raise ChatError.parse("Expected clarifying questions or a final artifact")
            if state.rounds_exhausted:
                self.console.display_progress(ProgressStage.ROUND_LIMIT_REACHED)
                return await self._force_finalization(FORCED_FINALIZATION_PROMPT)

            self._transition(Phase.AWAITING_ANSWER)
            answer_round = await self._collect_answers(response)
            if answer_round.aborted:
                return self._abort(AbortReason.USER_ABORT)

            answers_message = build_answers_message(answer_round.answers)
            state.round += 1
            if answer_round.proceed or state.rounds_exhausted:
                if not answer_round.proceed:
                    self.console.display_progress(ProgressStage.ROUND_LIMIT_REACHED)
                # Last answers and the finalization order share one user turn, so
                # no further clarifying batch can be requested past the cap.
                return await self._force_finalization(
                    f"{answers_message}\n\n{FORCED_FINALIZATION_PROMPT}",
                )

            state.append(Role.USER, answers_message)
            response = await self._exchange(ProgressStage.PROCESSING_ANSWERS)

    async def _read_seed(self) -> str:
        while True:
            line = await self.cancellation.race(self.console.prompt_seed_query())
            if line.strip():
                return line.strip()

    async def _collect_answers(self, batch: ClarifyingBatch) -> _AnswerRound:
        self.console.display_questions(batch, self.state.round + 1)
        answers: list[tuple[str, str]] = []
        for question in batch.questions:
            line = await self.cancellation.race(self.console.prompt_question(question))
            command = classify_answer(line)
            if command is AnswerCommand.ABORT:
                return _AnswerRound(answers, proceed=False, aborted=True)
            if command is AnswerCommand.PROCEED:
                return _AnswerRound(answers, proceed=True, aborted=False)
            if command is AnswerCommand.ANSWER:
                answers.append((question.label, line.strip()))
        return _AnswerRound(answers, proceed=False, aborted=False)

    async def _force_finalization(self, instruction: str) -> ConversationOutcome:
        self._transition(Phase.FINALIZING)
        self.state.append(Role.USER, instruction)
        response = await self._exchange(ProgressStage.FINALIZING)
        if not isinstance(response, FinalArtifact):
            raise ChatError.parse(
                "Expected a final artifact after the clarification budget was exhausted",
                raw=self.state.history[-1].content,
            )
        return self._finish(response)

    async def _exchange(self, stage: ProgressStage) -> ParsedResponse:
        request = ChatRequest(
            model=self.settings.model,
            messages=tuple(self.state.history),
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
        )
        self.console.display_progress(stage)
        logger.debug(
            "Sending TaskFinisher request: round=%d messages=%d",
            self.state.round,
            len(request.messages),
        )
        response = await self.engine.send(request, self.cancellation)
        self.state.append(Role.ASSISTANT, response.raw_content)
        return parse_response(response.raw_content, ParseMode.TASKFINISHER)

    def _finish(self, artifact: FinalArtifact) -> ConversationOutcome:
        self._transition(Phase.DONE)
        self.console.display(artifact)
        return ConversationOutcome(phase=Phase.DONE, rounds=self.state.round, artifact=artifact)

    def _abort(self, reason: AbortReason, error: ChatError | None = None) -> ConversationOutcome:
        self._transition(Phase.ABORTED)
        return ConversationOutcome(
            phase=Phase.ABORTED,
            rounds=self.state.round,
            error=error,
            reason=reason,
        )

    def _transition(self, phase: Phase) -> None:
        logger.debug(
            "TaskFinisher phase %s -> %s (round %d/%d)",
            self.state.phase.value,
            phase.value,
            self.state.round,
            self.state.max_questions,
        )
        self.state.phase = phase
