"""
Interactive prompt surface for the configure wizard.

Wraps questionary's async prompts. A dismissed prompt (Esc / Ctrl-C)
comes back from questionary as ``None`` and is raised here as
``UserCancelledError``.
"""

from __future__ import annotations

import asyncio
import inspect
import os
import shlex
import subprocess
from pathlib import Path
from typing import Any, Callable

import questionary
import structlog

from pipewright.cli import ux
from pipewright.core.errors import NotConfiguredError, UserCancelledError
from pipewright.wizard.interfaces import OptionSource, Validator
from pipewright.wizard.models import Choice

logger = structlog.get_logger()


def _title(choice: Choice) -> str:
    if choice.description:
        return f"{choice.label}  ({choice.description})"
    return choice.label


class QuestionaryPromptSurface:
    """``PromptSurface`` backed by questionary and the rich console."""

    def __init__(self, *, interactive: bool | None = None, editor: str | None = None) -> None:
        self._interactive = ux.is_interactive() if interactive is None else interactive
        self._editor = editor if editor is not None else os.environ.get("VISUAL") or os.environ.get("EDITOR")

    async def choose_one(self, step: str, options: OptionSource, placeholder: str) -> Choice:
        if inspect.isawaitable(options):
            with ux.spinner(placeholder):
                options = await options
        resolved = list(options)
        if not resolved:
            raise NotConfiguredError(f"Nothing to choose from: {placeholder}", details={"step": step})

        answer = await questionary.select(
            placeholder,
            choices=[questionary.Choice(title=_title(c), value=i) for i, c in enumerate(resolved)],
            style=ux.PROMPT_STYLE,
        ).ask_async()
        if answer is None:
            raise UserCancelledError(details={"step": step})
        return resolved[answer]

    async def text_input(
        self, step: str, placeholder: str, validate: Validator | None = None
    ) -> str:
        return await self._ask_text(questionary.text, step, placeholder, validate)

    async def secret_input(
        self, step: str, placeholder: str, validate: Validator | None = None
    ) -> str:
        """Like ``text_input`` but the answer is masked while typed."""
        return await self._ask_text(questionary.password, step, placeholder, validate)

    async def _ask_text(
        self, question: Callable[..., Any], step: str, placeholder: str, validate: Validator | None
    ) -> str:
        while True:
            value = await question(placeholder, style=ux.PROMPT_STYLE).ask_async()
            if value is None:
                raise UserCancelledError(details={"step": step})
            value = value.strip()
            if validate is None:
                return value
            problem = await validate(value)
            if problem is None:
                return value
            self.show_error(problem)

    async def confirm(self, message: str, affirmative: str, negative: str) -> bool:
        answer = await questionary.select(
            message, choices=[affirmative, negative], style=ux.PROMPT_STYLE
        ).ask_async()
        return answer == affirmative

    async def browse_folder(self, label: str) -> Path | None:
        answer = await questionary.path(
            label, only_directories=True, style=ux.PROMPT_STYLE
        ).ask_async()
        if not answer:
            return None
        return Path(answer).expanduser().resolve()

    async def open_file(self, path: Path) -> None:
        ux.info(f"Pipeline file written to {path}")
        if not (self._interactive and self._editor):
            return
        command = [*shlex.split(self._editor), str(path)]
        logger.debug("opening_editor", command=command)
        completed = await asyncio.to_thread(subprocess.run, command, check=False)
        if completed.returncode != 0:
            ux.warning(f"Editor exited with status {completed.returncode}")

    def show_error(self, message: str) -> None:
        ux.error(message)

    def show_info(self, message: str) -> None:
        ux.info(message)
