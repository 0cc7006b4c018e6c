import unittest

from schema_canvas.diagram_model import Table
from schema_canvas.entity_graph import EntityGraph
from schema_canvas.generation import GenerationController
from schema_canvas.gui_kit.job_lifecycle import JobLifecycleController


def _sync_run_async(worker, on_done, on_failed):
    try:
        payload = worker()
    except Exception as exc:
        on_failed(exc)
        return
    on_done(payload)


SCHOOL_PAYLOAD = {
    "tables": [
        {
            "id": "students",
            "name": "Students",
            "x": 0,
            "y": 0,
            "fields": [{"id": "s_id", "name": "id", "type": "UUID", "isPrimaryKey": True, "isNullable": False}],
        },
        {
            "id": "enrollments",
            "name": "Enrollments",
            "x": 400,
            "y": 0,
            "fields": [{"id": "e_student", "name": "student_id", "type": "UUID", "isForeignKey": True}],
        },
    ],
    "relationships": [
        {
            "id": "r1",
            "sourceTableId": "students",
            "sourceFieldId": "s_id",
            "targetTableId": "enrollments",
            "targetFieldId": "e_student",
            "cardinality": "1:N",
        }
    ],
}


class TestGenerationController(unittest.TestCase):
    def _controller(self, generate):
        self.graph = EntityGraph([Table(id="keep", name="Existing")], [])
        self.replaced: list[bool] = []
        self.failures: list[str] = []
        self.phases: list[tuple[bool, str]] = []
        self.prompts: list[str] = []

        def recording_generate(prompt):
            self.prompts.append(prompt)
            return generate(prompt)

        return GenerationController(
            graph=self.graph,
            generate=recording_generate,
            lifecycle=JobLifecycleController(
                set_running=lambda running, phase: self.phases.append((running, phase)),
                run_async=_sync_run_async,
            ),
            on_replaced=lambda: self.replaced.append(True),
            on_failed=self.failures.append,
        )

    def test_successful_generation_replaces_graph(self):
        controller = self._controller(lambda _prompt: SCHOOL_PAYLOAD)
        self.assertTrue(controller.request("  A school system  "))
        self.assertEqual(self.prompts, ["A school system"])
        self.assertEqual([t.name for t in self.graph.tables], ["Students", "Enrollments"])
        self.assertEqual(len(self.graph.relationships), 1)
        self.assertEqual(self.replaced, [True])
        self.assertEqual(self.failures, [])
        self.assertEqual(self.phases, [(True, "Designing..."), (False, "Generated.")])

    def test_empty_prompt_is_rejected_without_calling_generator(self):
        controller = self._controller(lambda _prompt: SCHOOL_PAYLOAD)
        self.assertFalse(controller.request("   "))
        self.assertEqual(self.prompts, [])
        self.assertEqual(len(self.failures), 1)
        self.assertIn("prompt is empty", self.failures[0])

    def test_generator_error_keeps_current_graph(self):
        def broken(_prompt):
            raise ConnectionError("service unavailable")

        controller = self._controller(broken)
        controller.request("Library")
        self.assertEqual([t.id for t in self.graph.tables], ["keep"])
        self.assertEqual(self.replaced, [])
        self.assertIn("service unavailable", self.failures[0])
        self.assertIn("Fix: check the generator configuration and try again.", self.failures[0])
        self.assertEqual(self.phases[-1], (False, "Generation failed."))

    def test_malformed_payload_keeps_current_graph(self):
        controller = self._controller(lambda _prompt: {"tables": "nope"})
        controller.request("Library")
        self.assertEqual([t.id for t in self.graph.tables], ["keep"])
        self.assertEqual(len(self.failures), 1)
        self.assertIn("current diagram was kept", self.failures[0])

    def test_invalid_graph_is_rejected_at_replace(self):
        payload = {
            "tables": [
                {"id": "dup", "name": "A", "x": 0, "y": 0, "fields": []},
                {"id": "dup", "name": "B", "x": 0, "y": 0, "fields": []},
            ],
            "relationships": [],
        }
        controller = self._controller(lambda _prompt: payload)
        controller.request("Library")
        self.assertEqual([t.id for t in self.graph.tables], ["keep"])
        self.assertEqual(self.replaced, [])
        self.assertEqual(len(self.failures), 1)


    def test_cancelled_request_never_touches_graph(self):
        pending: list[tuple] = []
        self.graph = EntityGraph([Table(id="keep", name="Existing")], [])
        controller = GenerationController(
            graph=self.graph,
            generate=lambda _prompt: SCHOOL_PAYLOAD,
            lifecycle=JobLifecycleController(
                set_running=lambda *_args: None,
                run_async=lambda worker, on_done, on_failed: pending.append((worker, on_done)),
            ),
            on_replaced=lambda: self.fail("cancelled result must not be applied"),
            on_failed=lambda message: self.fail(message),
        )
        self.assertTrue(controller.request("Library"))
        self.assertTrue(controller.is_running)
        self.assertTrue(controller.cancel())
        self.assertFalse(controller.is_running)

        worker, on_done = pending[0]
        on_done(worker())
        self.assertEqual([t.id for t in self.graph.tables], ["keep"])
        self.assertFalse(controller.cancel())


if __name__ == "__main__":
    unittest.main()
