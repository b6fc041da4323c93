"""CLI entrypoint for deepseek-json."""

import rich_click as click

from deepseek_json import __version__
from deepseek_json.config import LOG_LEVELS, MAX_TEMPERATURE, MIN_TEMPERATURE
from deepseek_json.controllers import ChatCliController, ChatCommand

click.rich_click.USE_MARKDOWN = True
CHAT_CONTROLLER = ChatCliController()


@click.command()
@click.version_option(version=__version__, prog_name="deepseek-json")
@click.option(
    "-q",
    "--query",
    default=None,
    help="Send one query and exit. With `--taskfinisher` it seeds the conversation.",
)
@click.option("-m", "--model", default=None, help="Model name (env: DEEPSEEK_MODEL).")
@click.option(
    "-t",
    "--temperature",
    type=click.FloatRange(MIN_TEMPERATURE, MAX_TEMPERATURE),
    default=None,
    help="Sampling temperature (env: DEEPSEEK_TEMPERATURE).",
)
@click.option(
    "--max-tokens",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum tokens in the reply (env: DEEPSEEK_MAX_TOKENS).",
)
@click.option(
    "--timeout",
    "timeout_seconds",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Per-attempt request timeout in seconds (env: DEEPSEEK_TIMEOUT).",
)
@click.option("--base-url", default=None, help="API base URL (env: DEEPSEEK_BASE_URL).")
@click.option(
    "--taskfinisher/--no-taskfinisher",
    default=False,
    show_default=True,
    help="Ask clarifying questions, then produce a technical task artifact.",
)
@click.option(
    "--max-questions",
    type=click.IntRange(min=0),
    default=None,
    help="Clarifying rounds for TaskFinisher, capped at 5; 0 selects the default of 3.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Diagnostic log level on stderr (env: DEEPSEEK_LOG_LEVEL).",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Show the raw error detail (response body, snippet) under each error.",
)
@click.pass_context
def deepseek_json(  # noqa: PLR0913
    ctx: click.Context,
    query: str | None,
    model: str | None,
    temperature: float | None,
    max_tokens: int | None,
    timeout_seconds: float | None,
    base_url: str | None,
    taskfinisher: bool,
    max_questions: int | None,
    log_level: str | None,
    verbose: bool,
) -> None:
    """Chat with DeepSeek and get structured JSON answers.

    Without `--query` an interactive session starts; type `/quit` to leave.
    """

    exit_code = CHAT_CONTROLLER.run(
        ChatCommand(
            query=query,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout_seconds=timeout_seconds,
            base_url=base_url,
            taskfinisher=taskfinisher,
            max_questions=max_questions,
            log_level=log_level,
            verbose=verbose,
        ),
    )
    if exit_code:
        ctx.exit(int(exit_code))


if __name__ == "__main__":  # pragma: no cover
    deepseek_json()
