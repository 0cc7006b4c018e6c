from __future__ import annotations

import logging
from typing import Any, Callable

from schema_canvas.entity_graph import EntityGraph
from schema_canvas.gui_kit.error_contract import canvas_error
from schema_canvas.gui_kit.job_lifecycle import JobLifecycleController
from schema_canvas.schema_io import parse_graph_payload

logger = logging.getLogger("generation")

# prompt -> {"tables": [...], "relationships": [...]} in the project file format
SchemaGenerator = Callable[[str], Any]

EXAMPLE_PROMPT = "Create a school system with Students, Courses, and Teachers."
RETRY_HINT = "check the generator configuration and try again"


class GenerationController:
    """Runs an external schema generator off the UI thread and swaps the graph on success.

    The generator is any callable taking the prompt; its payload goes through
    the same parse/validate path as a project import. Failures leave the graph
    as it was and are reported as retryable.
    """

    def __init__(
        self,
        *,
        graph: EntityGraph,
        generate: SchemaGenerator,
        lifecycle: JobLifecycleController,
        on_replaced: Callable[[], None],
        on_failed: Callable[[str], None],
    ) -> None:
        self.graph = graph
        self.generate = generate
        self.lifecycle = lifecycle
        self._on_replaced = on_replaced
        self._on_failed = on_failed

    @property
    def is_running(self) -> bool:
        return self.lifecycle.state.is_running

    def request(self, prompt: Any) -> bool:
        if not isinstance(prompt, str) or prompt.strip() == "":
            self._on_failed(
                canvas_error("Generate schema", "prompt is empty", "describe the system you want to model")
            )
            return False
        clean_prompt = prompt.strip()

        def worker() -> object:
            # Parse on the worker thread; only the validated result touches the graph.
            return parse_graph_payload(self.generate(clean_prompt))

        logger.info("Requesting generated schema (%d chars).", len(clean_prompt))
        return self.lifecycle.run_async(
            worker=worker,
            on_done=self._apply,
            on_failed=self._fail,
            phase_label="Designing...",
            success_phase="Generated.",
            failure_phase="Generation failed.",
        )

    def cancel(self) -> bool:
        """Forget the in-flight request; its result will not touch the graph."""
        return self.lifecycle.cancel("Generation cancelled.")

    def _apply(self, payload: object) -> None:
        tables, relationships = payload  # type: ignore[misc]
        try:
            self.graph.replace(tables, relationships)
        except ValueError as exc:
            self._fail(str(exc))
            return
        logger.info("Applied generated schema with %d table(s).", len(tables))
        self._on_replaced()

    def _fail(self, message: str) -> None:
        logger.warning("Schema generation failed: %s", message)
        self._on_failed(
            canvas_error(
                "Generate schema",
                f"generation failed ({message or 'unknown error'}); the current diagram was kept",
                RETRY_HINT,
            )
        )
