"""Nova console entry point."""

import asyncio
import logging

from nova.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
)
logger = logging.getLogger(__name__)


async def _run() -> None:
    from nova.console.app import ConsoleApp
    from nova.engine.orchestrator import Orchestrator
    from nova.llm.service import LanguageService
    from nova.state.session import SessionState
    from nova.state.store import StateStore

    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is empty; replies will fail")

    orchestrator = Orchestrator(SessionState(StateStore()), LanguageService())
    await ConsoleApp(orchestrator).run()


def main() -> None:
    """Start an interactive session in the terminal."""
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
