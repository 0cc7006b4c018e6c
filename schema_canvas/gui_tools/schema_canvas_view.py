import logging
import random
import tkinter as tk
from tkinter import filedialog, ttk

from schema_canvas.config import AppConfig
from schema_canvas.diagram_frame import EdgePaint, TablePaint, build_frame
from schema_canvas.diagram_model import FIELD_TYPES
from schema_canvas.entity_graph import EntityGraph
from schema_canvas.flow_colors import CONNECTION_COLORS
from schema_canvas.generation import EXAMPLE_PROMPT, GenerationController, SchemaGenerator
from schema_canvas.geometry import Point
from schema_canvas.gui_kit.error_contract import canvas_error
from schema_canvas.gui_kit.error_surface import ErrorSurface
from schema_canvas.gui_kit.error_surface import show_error_dialog
from schema_canvas.gui_kit.error_surface import show_warning_dialog
from schema_canvas.gui_kit.job_lifecycle import JobLifecycleController
from schema_canvas.gui_kit.ui_dispatch import UIDispatcher, thread_runner
from schema_canvas.interaction import PRIMARY, SECONDARY, CanvasInteraction
from schema_canvas.schema_io import (
    build_graph_sql_ddl,
    load_graph_from_json,
    save_graph_to_json,
    write_text_export,
)
from schema_canvas.svg_export import export_diagram_svg
from schema_canvas.view_transform import ViewTransform

logger = logging.getLogger("schema_canvas_view")

CANVAS_BACKGROUND = "#f8fafc"


def _blend(color: str, opacity: float, background: str = CANVAS_BACKGROUND) -> str:
    """Tk has no alpha channel; fade color toward the canvas background instead."""
    if opacity >= 1.0 or not color.startswith("#") or len(color) != 7:
        return color
    fg = [int(color[i : i + 2], 16) for i in (1, 3, 5)]
    bg = [int(background[i : i + 2], 16) for i in (1, 3, 5)]
    mixed = [round(f * opacity + b * (1 - opacity)) for f, b in zip(fg, bg)]
    return "#" + "".join(f"{c:02x}" for c in mixed)


class SchemaCanvasToolFrame(ttk.Frame):
    """Pan/zoom ERD canvas with drag, handle-to-handle connections and flow highlighting."""
    ERROR_SURFACE_CONTEXT = "Schema canvas"
    ERROR_DIALOG_TITLE = "Schema canvas error"
    WARNING_DIALOG_TITLE = "Schema canvas warning"

    def __init__(
        self,
        parent: tk.Widget,
        cfg: AppConfig,
        *,
        graph: EntityGraph | None = None,
        generate: SchemaGenerator | None = None,
    ) -> None:
        super().__init__(parent, padding=8)
        self.cfg = cfg
        self.graph = graph if graph is not None else EntityGraph()
        self.view = ViewTransform.from_config(cfg)
        self.interaction = CanvasInteraction(self.graph, self.view, rng=random.Random(cfg.palette_seed))
        self._inspected_table_id: str | None = None
        self._field_ids: list[str] = []
        self._field_labels: list[str] = []

        self.status_var = tk.StringVar(value="Add a table or load a project JSON file to start.")
        self.zoom_var = tk.StringVar(value="100%")
        self.prompt_var = tk.StringVar(value=EXAMPLE_PROMPT)
        self.table_name_var = tk.StringVar(value="")
        self.table_description_var = tk.StringVar(value="")
        self.image_url_var = tk.StringVar(value="")
        self.field_current_var = tk.StringVar(value="")
        self.field_name_var = tk.StringVar(value="")
        self.field_type_var = tk.StringVar(value="VARCHAR")
        self.field_primary_key_var = tk.BooleanVar(value=False)
        self.field_foreign_key_var = tk.BooleanVar(value=False)
        self.field_nullable_var = tk.BooleanVar(value=True)
        self.field_description_var = tk.StringVar(value="")
        self.error_surface = ErrorSurface(
            context=self.ERROR_SURFACE_CONTEXT,
            dialog_title=self.ERROR_DIALOG_TITLE,
            warning_title=self.WARNING_DIALOG_TITLE,
            show_dialog=show_error_dialog,
            show_warning=show_warning_dialog,
            set_status=self.status_var.set,
        )

        self.generation: GenerationController | None = None
        if generate is not None:
            self.generation = GenerationController(
                graph=self.graph,
                generate=generate,
                lifecycle=JobLifecycleController(
                    set_running=self._set_generation_running,
                    run_async=thread_runner(UIDispatcher.from_widget(self)),
                ),
                on_replaced=self._on_generation_replaced,
                on_failed=self._on_generation_failed,
            )

        self._build_sidebar()
        self._build_canvas()
        self._sync_inspector(force=True)
        self._redraw()

    # ---- layout ----

    def _build_sidebar(self) -> None:
        sidebar = ttk.Frame(self, width=300)
        sidebar.pack(side="left", fill="y", padx=(0, 8))

        view_box = ttk.LabelFrame(sidebar, text="Canvas", padding=8)
        view_box.pack(fill="x", pady=(0, 8))
        ttk.Button(view_box, text="Add table", command=self._add_table).grid(row=0, column=0, columnspan=3, sticky="ew")
        ttk.Button(view_box, text="−", width=3, command=self._zoom_out).grid(row=1, column=0, pady=(6, 0))
        ttk.Label(view_box, textvariable=self.zoom_var, width=6, anchor="center").grid(row=1, column=1, pady=(6, 0))
        ttk.Button(view_box, text="+", width=3, command=self._zoom_in).grid(row=1, column=2, pady=(6, 0))
        ttk.Button(view_box, text="Reset view", command=self._reset_view).grid(
            row=2, column=0, columnspan=3, sticky="ew", pady=(6, 0)
        )
        self.cancel_connection_btn = ttk.Button(view_box, text="Cancel connection", command=self._cancel_connection)
        self.cancel_connection_btn.grid(row=3, column=0, columnspan=3, sticky="ew", pady=(6, 0))
        self.clear_focus_btn = ttk.Button(view_box, text="Clear flow focus", command=self._clear_focus)
        self.clear_focus_btn.grid(row=4, column=0, columnspan=3, sticky="ew", pady=(6, 0))
        view_box.columnconfigure(1, weight=1)

        file_box = ttk.LabelFrame(sidebar, text="Project", padding=8)
        file_box.pack(fill="x", pady=(0, 8))
        ttk.Button(file_box, text="Load JSON...", command=self._load_project).pack(fill="x")
        ttk.Button(file_box, text="Save JSON...", command=self._save_project).pack(fill="x", pady=(6, 0))
        ttk.Button(file_box, text="Show SQL...", command=self._show_sql).pack(fill="x", pady=(6, 0))
        ttk.Button(file_box, text="Export SVG...", command=self._export_svg).pack(fill="x", pady=(6, 0))

        generate_box = ttk.LabelFrame(sidebar, text="Generate schema", padding=8)
        generate_box.pack(fill="x", pady=(0, 8))
        ttk.Entry(generate_box, textvariable=self.prompt_var).pack(fill="x")
        self.generate_btn = ttk.Button(generate_box, text="Generate", command=self._request_generation)
        self.generate_btn.pack(fill="x", pady=(6, 0))
        if self.generation is None:
            self.generate_btn.state(["disabled"])
        hint = "" if self.generation is not None else "Unavailable: no schema generator is configured."
        self.generate_hint = ttk.Label(generate_box, text=hint, foreground="#64748b", wraplength=260)
        if hint:
            self.generate_hint.pack(fill="x", pady=(4, 0))

        inspector = ttk.LabelFrame(sidebar, text="Selected table", padding=8)
        inspector.pack(fill="x")
        inspector.columnconfigure(1, weight=1)
        ttk.Label(inspector, text="Name").grid(row=0, column=0, sticky="w")
        ttk.Entry(inspector, textvariable=self.table_name_var).grid(row=0, column=1, sticky="ew", padx=(8, 0))
        ttk.Label(inspector, text="Description").grid(row=1, column=0, sticky="w", pady=(4, 0))
        ttk.Entry(inspector, textvariable=self.table_description_var).grid(
            row=1, column=1, sticky="ew", padx=(8, 0), pady=(4, 0)
        )
        ttk.Label(inspector, text="Image URL").grid(row=2, column=0, sticky="w", pady=(4, 0))
        ttk.Entry(inspector, textvariable=self.image_url_var).grid(row=2, column=1, sticky="ew", padx=(8, 0), pady=(4, 0))
        table_buttons = ttk.Frame(inspector)
        table_buttons.grid(row=3, column=0, columnspan=2, sticky="ew", pady=(6, 0))
        ttk.Button(table_buttons, text="Save table", command=self._save_table).pack(side="left")
        ttk.Button(table_buttons, text="Delete table", command=self._delete_table).pack(side="left", padx=(6, 0))

        ttk.Separator(inspector).grid(row=4, column=0, columnspan=2, sticky="ew", pady=8)
        ttk.Label(inspector, text="Field").grid(row=5, column=0, sticky="w")
        self.field_combo = ttk.Combobox(inspector, textvariable=self.field_current_var, state="readonly", values=())
        self.field_combo.grid(row=5, column=1, sticky="ew", padx=(8, 0))
        self.field_combo.bind("<<ComboboxSelected>>", lambda _event: self._on_field_selected())
        ttk.Label(inspector, text="Name").grid(row=6, column=0, sticky="w", pady=(4, 0))
        ttk.Entry(inspector, textvariable=self.field_name_var).grid(row=6, column=1, sticky="ew", padx=(8, 0), pady=(4, 0))
        ttk.Label(inspector, text="Type").grid(row=7, column=0, sticky="w", pady=(4, 0))
        ttk.Combobox(inspector, textvariable=self.field_type_var, state="readonly", values=FIELD_TYPES).grid(
            row=7, column=1, sticky="ew", padx=(8, 0), pady=(4, 0)
        )
        ttk.Label(inspector, text="Description").grid(row=8, column=0, sticky="w", pady=(4, 0))
        ttk.Entry(inspector, textvariable=self.field_description_var).grid(
            row=8, column=1, sticky="ew", padx=(8, 0), pady=(4, 0)
        )
        flags = ttk.Frame(inspector)
        flags.grid(row=9, column=0, columnspan=2, sticky="w", pady=(4, 0))
        ttk.Checkbutton(flags, text="PK", variable=self.field_primary_key_var).pack(side="left")
        ttk.Checkbutton(flags, text="FK", variable=self.field_foreign_key_var).pack(side="left", padx=(8, 0))
        ttk.Checkbutton(flags, text="Nullable", variable=self.field_nullable_var).pack(side="left", padx=(8, 0))
        field_buttons = ttk.Frame(inspector)
        field_buttons.grid(row=10, column=0, columnspan=2, sticky="ew", pady=(6, 0))
        ttk.Button(field_buttons, text="Add field", command=self._add_field).pack(side="left")
        ttk.Button(field_buttons, text="Save field", command=self._save_field).pack(side="left", padx=(6, 0))
        ttk.Button(field_buttons, text="Delete", command=self._delete_field).pack(side="left", padx=(6, 0))
        ttk.Button(field_buttons, text="Disconnect", command=self._disconnect_field).pack(side="left", padx=(6, 0))

        ttk.Label(sidebar, textvariable=self.status_var, wraplength=280, justify="left").pack(
            fill="x", side="bottom", pady=(8, 0)
        )

    def _build_canvas(self) -> None:
        self.canvas = tk.Canvas(self, background=CANVAS_BACKGROUND, highlightthickness=0)
        self.canvas.pack(side="left", fill="both", expand=True)
        self.canvas.bind("<ButtonPress-1>", self._on_primary_down)
        self.canvas.bind("<ButtonPress-3>", self._on_secondary_down)
        self.canvas.bind("<B1-Motion>", self._on_pointer_move)
        self.canvas.bind("<Motion>", self._on_pointer_move)
        self.canvas.bind("<ButtonRelease-1>", self._on_pointer_up)
        self.canvas.bind("<Leave>", self._on_pointer_leave)
        self.canvas.bind("<MouseWheel>", self._on_mouse_wheel)
        self.canvas.bind("<Button-4>", lambda event: self._on_wheel_delta(event, -120.0))
        self.canvas.bind("<Button-5>", lambda event: self._on_wheel_delta(event, 120.0))
        self.canvas.bind("<Escape>", lambda _event: self._escape())
        self.canvas.bind("<Delete>", lambda _event: self._delete_table())
        self.canvas.bind("<Configure>", lambda _event: self._redraw())

    # ---- error plumbing ----

    def _show_error(self, exc: Exception | str, *, location: str) -> None:
        self.error_surface.emit_exception_actionable(
            exc,
            location=location,
            hint="review the inputs and retry",
            mode="mixed",
        )

    def _guarded(self, location: str, action) -> bool:
        try:
            action()
        except ValueError as exc:
            self._show_error(exc, location=location)
            self._redraw()
            return False
        return True

    # ---- pointer events ----

    @staticmethod
    def _event_point(event: tk.Event) -> Point:
        return Point(float(event.x), float(event.y))

    def _on_primary_down(self, event: tk.Event) -> None:
        self.canvas.focus_set()
        if self._guarded("Canvas", lambda: self.interaction.pointer_down(self._event_point(event), PRIMARY)):
            self._redraw()

    def _on_secondary_down(self, event: tk.Event) -> None:
        self.interaction.pointer_down(self._event_point(event), SECONDARY)
        self._redraw()
        if self.interaction.context_menu is not None:
            self._post_context_menu(event)

    def _on_pointer_move(self, event: tk.Event) -> None:
        if self.interaction.mode == "Idle":
            return
        self.interaction.pointer_move(self._event_point(event))
        self._redraw()

    def _on_pointer_up(self, _event: tk.Event) -> None:
        self.interaction.pointer_up()
        self._redraw()

    def _on_pointer_leave(self, _event: tk.Event) -> None:
        self.interaction.pointer_leave()
        self._redraw()

    def _on_mouse_wheel(self, event: tk.Event) -> None:
        # Tk reports +delta for scroll up; the view expects negative delta to zoom in.
        self._on_wheel_delta(event, -float(event.delta))

    def _on_wheel_delta(self, event: tk.Event, delta_y: float) -> None:
        self.interaction.wheel(delta_y, self._event_point(event))
        self._redraw()

    def _escape(self) -> None:
        self.interaction.escape()
        self._redraw()

    # ---- toolbar actions ----

    def _zoom_in(self) -> None:
        self.view.zoom_in(anchor=self._viewport_center())
        self._redraw()

    def _zoom_out(self) -> None:
        self.view.zoom_out(anchor=self._viewport_center())
        self._redraw()

    def _reset_view(self) -> None:
        self.view.reset()
        self._redraw()

    def _cancel_connection(self) -> None:
        self.interaction.cancel_connection()
        self._redraw()

    def _clear_focus(self) -> None:
        self.interaction.clear_highlight()
        self._redraw()

    def _viewport_center(self) -> Point:
        return Point(self.canvas.winfo_width() / 2, self.canvas.winfo_height() / 2)

    def _add_table(self) -> None:
        table = self.interaction.add_table_at_viewport_center(
            max(1, self.canvas.winfo_width()),
            max(1, self.canvas.winfo_height()),
        )
        self._sync_inspector(force=True)
        self._redraw()
        self.status_var.set(f"Added table '{table.name}'.")

    # ---- context menu ----

    def _post_context_menu(self, event: tk.Event) -> None:
        menu_state = self.interaction.context_menu
        if menu_state is None:
            return
        menu = tk.Menu(self, tearoff=0)
        recolor = tk.Menu(menu, tearoff=0)
        for color in CONNECTION_COLORS:
            recolor.add_command(
                label=color,
                background=color,
                command=lambda value=color: self._menu_action(lambda: self.interaction.recolor_from_menu(value)),
            )
        if menu_state.relationship_id is not None:
            menu.add_cascade(label="Recolor", menu=recolor)
        focused = self.interaction.highlighted_color == menu_state.color
        menu.add_command(
            label="Unfocus flow" if focused else "Focus this flow",
            command=lambda: self._menu_action(self.interaction.toggle_focus_from_menu),
        )
        if menu_state.field_id is not None and menu_state.table_id is not None:
            table_id, field_id = menu_state.table_id, menu_state.field_id
            menu.add_command(
                label="Disconnect field",
                command=lambda: self._menu_action(lambda: self.interaction.disconnect_field(table_id, field_id)),
            )
        elif menu_state.relationship_id is not None:
            menu.add_separator()
            menu.add_command(
                label="Delete relationship",
                command=lambda: self._menu_action(self.interaction.delete_from_menu),
            )
        try:
            menu.tk_popup(event.x_root, event.y_root)
        finally:
            menu.grab_release()

    def _menu_action(self, action) -> None:
        self._guarded("Context menu", action)
        self.interaction.close_context_menu()
        self._redraw()

    # ---- inspector ----

    def _selected_table(self):
        return self.graph.find_table(self.interaction.selected_table_id)

    def _sync_inspector(self, *, force: bool = False) -> None:
        table = self._selected_table()
        table_id = table.id if table is not None else None
        if not force and table_id == self._inspected_table_id:
            return
        self._inspected_table_id = table_id
        if table is None:
            self.table_name_var.set("")
            self.table_description_var.set("")
            self.image_url_var.set("")
            self._field_ids = []
            self._field_labels = []
            self.field_combo.configure(values=())
            self.field_current_var.set("")
            self._on_field_selected()
            return
        self.table_name_var.set(table.name)
        self.table_description_var.set(table.description)
        self.image_url_var.set(table.image_url or "")
        self._field_ids = [f.id for f in table.fields]
        labels = [f"{idx + 1}. {f.name}" for idx, f in enumerate(table.fields)]
        self._field_labels = labels
        self.field_combo.configure(values=tuple(labels))
        current = self.field_current_var.get()
        if current not in labels:
            self.field_current_var.set(labels[0] if labels else "")
        self._on_field_selected()

    def _selected_field_id(self) -> str | None:
        current = self.field_current_var.get()
        if current not in self._field_labels:
            return None
        return self._field_ids[self._field_labels.index(current)]

    def _on_field_selected(self) -> None:
        table = self._selected_table()
        field = table.field_by_id(self._selected_field_id()) if table is not None else None
        if field is None:
            self.field_name_var.set("")
            self.field_type_var.set("VARCHAR")
            self.field_primary_key_var.set(False)
            self.field_foreign_key_var.set(False)
            self.field_nullable_var.set(True)
            self.field_description_var.set("")
            return
        self.field_name_var.set(field.name)
        self.field_type_var.set(field.type)
        self.field_primary_key_var.set(field.primary_key)
        self.field_foreign_key_var.set(field.foreign_key)
        self.field_nullable_var.set(field.nullable)
        self.field_description_var.set(field.description)

    def _require_selection(self, location: str) -> str | None:
        table = self._selected_table()
        if table is None:
            self.error_surface.emit_warning_actionable(
                canvas_error(location, "no table is selected", "click a table on the canvas first"),
                location=location,
                hint="click a table on the canvas first",
            )
            return None
        return table.id

    def _save_table(self) -> None:
        table_id = self._require_selection("Edit table")
        if table_id is None:
            return
        name = self.table_name_var.get().strip()
        if name == "":
            self._show_error(canvas_error("Edit table", "table name is empty", "enter a table name"), location="Edit table")
            return
        image_url = self.image_url_var.get().strip() or None
        if self._guarded(
            "Edit table",
            lambda: self.graph.update_table(
                table_id,
                name=name,
                description=self.table_description_var.get().strip(),
                image_url=image_url,
            ),
        ):
            self._sync_inspector(force=True)
            self._redraw()
            self.status_var.set(f"Updated table '{name}'.")

    def _delete_table(self) -> None:
        table = self._selected_table()
        if table is None:
            return
        if self._guarded("Delete table", lambda: self.interaction.delete_table(table.id)):
            self._sync_inspector(force=True)
            self._redraw()
            self.status_var.set(f"Deleted table '{table.name}'.")

    def _add_field(self) -> None:
        table_id = self._require_selection("Add field")
        if table_id is None:
            return
        added: list = []
        if self._guarded("Add field", lambda: added.append(self.interaction.add_default_field(table_id))):
            self._sync_inspector(force=True)
            if self._field_labels:
                self.field_current_var.set(self._field_labels[-1])
                self._on_field_selected()
            self._redraw()
            self.status_var.set(f"Added field '{added[0].name}'.")

    def _save_field(self) -> None:
        table_id = self._require_selection("Edit field")
        field_id = self._selected_field_id()
        if table_id is None or field_id is None:
            return
        name = self.field_name_var.get().strip()
        if name == "":
            self._show_error(canvas_error("Edit field", "field name is empty", "enter a field name"), location="Edit field")
            return
        if self._guarded(
            "Edit field",
            lambda: self.graph.update_field(
                table_id,
                field_id,
                name=name,
                type=self.field_type_var.get(),
                primary_key=bool(self.field_primary_key_var.get()),
                foreign_key=bool(self.field_foreign_key_var.get()),
                nullable=bool(self.field_nullable_var.get()),
                description=self.field_description_var.get().strip(),
            ),
        ):
            self._sync_inspector(force=True)
            self._redraw()
            self.status_var.set(f"Updated field '{name}'.")

    def _delete_field(self) -> None:
        table_id = self._require_selection("Delete field")
        field_id = self._selected_field_id()
        if table_id is None or field_id is None:
            return
        if self._guarded("Delete field", lambda: self.interaction.delete_field(table_id, field_id)):
            self._sync_inspector(force=True)
            self._redraw()

    def _disconnect_field(self) -> None:
        table_id = self._require_selection("Disconnect field")
        field_id = self._selected_field_id()
        if table_id is None or field_id is None:
            return
        removed = self.interaction.disconnect_field(table_id, field_id)
        self._redraw()
        self.status_var.set(f"Removed {len(removed)} relationship(s).")

    # ---- project files ----

    def _load_project(self) -> None:
        path = filedialog.askopenfilename(
            title="Open project JSON",
            filetypes=[("JSON files", "*.json"), ("All files", "*.*")],
        )
        if path == "":
            return
        if self._guarded("Load project", lambda: load_graph_from_json(self.graph, path)):
            if self.generation is not None:
                self.generation.cancel()
            self.view.reset()
            self._sync_inspector(force=True)
            self._redraw()
            self.status_var.set(f"Loaded {len(self.graph.tables)} table(s) from {path}.")

    def _save_project(self) -> None:
        path = filedialog.asksaveasfilename(
            title="Save project JSON",
            defaultextension=".json",
            initialfile="schema.json",
            filetypes=[("JSON files", "*.json"), ("All files", "*.*")],
        )
        if path == "":
            self.status_var.set("Save cancelled.")
            return
        if self._guarded("Save project", lambda: save_graph_to_json(self.graph, path)):
            self.status_var.set(f"Saved project to {path}.")

    def _export_svg(self) -> None:
        path = filedialog.asksaveasfilename(
            title="Export diagram",
            defaultextension=".svg",
            initialfile="schema.svg",
            filetypes=[("SVG files", "*.svg"), ("All files", "*.*")],
        )
        if path == "":
            self.status_var.set("Export cancelled.")
            return
        frame = build_frame(self.interaction)
        if self._guarded("Export diagram", lambda: export_diagram_svg(frame=frame, output_path_value=path)):
            self.status_var.set(f"Exported diagram to {path}.")

    def _show_sql(self) -> None:
        ddl = build_graph_sql_ddl(self.graph)
        window = tk.Toplevel(self)
        window.title("SQL DDL")
        text = tk.Text(window, width=80, height=30, font=("Consolas", 10))
        text.insert("1.0", ddl or "-- No tables yet.\n")
        text.configure(state="disabled")
        text.pack(fill="both", expand=True)
        buttons = ttk.Frame(window, padding=6)
        buttons.pack(fill="x")

        def copy() -> None:
            self.clipboard_clear()
            self.clipboard_append(ddl)
            self.status_var.set("Copied SQL to clipboard.")

        def save() -> None:
            path = filedialog.asksaveasfilename(
                parent=window,
                title="Save SQL",
                defaultextension=".sql",
                initialfile="schema.sql",
                filetypes=[("SQL files", "*.sql"), ("All files", "*.*")],
            )
            if path == "":
                return
            if self._guarded(
                "Save SQL",
                lambda: write_text_export(path, ddl, location="Save SQL", suffixes=(".sql",)),
            ):
                self.status_var.set(f"Saved SQL to {path}.")

        ttk.Button(buttons, text="Copy", command=copy).pack(side="left")
        ttk.Button(buttons, text="Save...", command=save).pack(side="left", padx=(6, 0))

    # ---- generation ----

    def _request_generation(self) -> None:
        if self.generation is None:
            return
        if not self.generation.request(self.prompt_var.get()) and self.generation.is_running:
            self.status_var.set("Generation already running.")

    def _set_generation_running(self, running: bool, phase: str) -> None:
        if running:
            self.generate_btn.state(["disabled"])
        else:
            self.generate_btn.state(["!disabled"])
        self.status_var.set(phase)

    def _on_generation_replaced(self) -> None:
        self.view.reset()
        self._sync_inspector(force=True)
        self._redraw()
        self.status_var.set(f"Generated {len(self.graph.tables)} table(s).")

    def _on_generation_failed(self, message: str) -> None:
        self._show_error(message, location="Generate schema")

    # ---- drawing ----

    def _screen(self, p: Point) -> tuple[float, float]:
        s = self.view.world_to_screen(p)
        return s.x, s.y

    def _font(self, size: float, *, family: str = "Segoe UI", weight: str = "normal") -> tuple:
        return (family, max(1, int(round(size * self.view.zoom))), weight)

    def _redraw(self) -> None:
        frame = build_frame(self.interaction)
        self.canvas.delete("all")

        for edge in frame.edges:
            self._draw_edge(edge)
        for table in frame.tables:
            self._draw_table(table, connecting=frame.connecting)
        if frame.preview is not None:
            start, end = frame.preview
            self.canvas.create_line(*self._screen(start), *self._screen(end), fill="#3b82f6", width=2, dash=(6, 4))

        self.canvas.configure(cursor=frame.cursor)
        self.zoom_var.set(f"{self.view.zoom_percent()}%")
        if frame.connecting:
            self.cancel_connection_btn.state(["!disabled"])
            self.status_var.set(f"{frame.connection_prompt}. Press Escape to cancel.")
        else:
            self.cancel_connection_btn.state(["disabled"])
        if frame.highlighted_color is None:
            self.clear_focus_btn.state(["disabled"])
        else:
            self.clear_focus_btn.state(["!disabled"])
        self._sync_inspector()

    def _draw_edge(self, edge: EdgePaint) -> None:
        route = edge.route
        color = _blend(edge.color, edge.opacity)
        width = max(1, round(2 * self.view.zoom))
        # Mid-drag frames repaint on every motion event: bare lines only.
        arrow = tk.LAST if edge.show_flow else tk.NONE
        if route.kind == "curve" and route.control1 is not None and route.control2 is not None:
            points = [route.start, route.control1, route.control2, route.end]
            coords = [c for p in points for c in self._screen(p)]
            self.canvas.create_line(*coords, smooth="raw", fill=color, width=width, arrow=arrow)
        else:
            self.canvas.create_line(
                *self._screen(route.start), *self._screen(route.end), fill=color, width=width, arrow=arrow
            )
        if edge.label and edge.show_flow:
            x, y = self._screen(route.midpoint)
            self.canvas.create_text(x + 6, y - 7, text=edge.label, anchor="w", font=self._font(8), fill=color)

    def _draw_table(self, table: TablePaint, *, connecting: bool) -> None:
        box = table.box
        x1, y1 = self._screen(Point(box.x, box.y))
        x2, y2 = self._screen(Point(box.x + box.width, box.y + box.height))
        outline = _blend("#3b82f6" if table.selected else "#556b8a", table.opacity)
        fill = _blend("#ffffff", table.opacity)
        header_y = y1 + table.header_height * self.view.zoom
        self.canvas.create_rectangle(x1, y1, x2, y2, fill=fill, outline=outline, width=2)
        self.canvas.create_rectangle(x1, y1, x2, header_y, fill=_blend("#dae7f8", table.opacity), outline=outline, width=2)
        self.canvas.create_text(
            x1 + 12 * self.view.zoom,
            (y1 + header_y) / 2,
            text=table.name,
            anchor="w",
            font=self._font(11, weight="bold"),
            fill=_blend("#1a2a44", table.opacity),
        )
        if table.description:
            self.canvas.create_text(
                x1 + 12 * self.view.zoom,
                header_y + 6 * self.view.zoom,
                text=table.description,
                anchor="nw",
                width=(box.width - 24) * self.view.zoom,
                font=self._font(8),
                fill=_blend("#64748b", table.opacity),
            )
        if table.image_height:
            top = header_y + table.description_height * self.view.zoom
            self.canvas.create_rectangle(
                x1 + 8 * self.view.zoom,
                top + 4 * self.view.zoom,
                x2 - 8 * self.view.zoom,
                top + (table.image_height - 4) * self.view.zoom,
                fill=_blend("#e2e8f0", table.opacity),
                outline="",
            )

        for f in table.fields:
            opacity = min(table.opacity, f.opacity)
            row_mid = self._screen(Point(f.row.x, f.row.y + f.row.height / 2))[1]
            tags = [tag for tag, on in (("PK", f.primary_key), ("FK", f.foreign_key)) if on]
            label = f"{'/'.join(tags) + ' ' if tags else ''}{f.name}"
            self.canvas.create_text(
                x1 + 16 * self.view.zoom,
                row_mid,
                text=label,
                anchor="w",
                font=self._font(9, family="Consolas"),
                fill=_blend("#27374d", opacity),
            )
            self.canvas.create_text(
                x2 - 16 * self.view.zoom,
                row_mid,
                text=f.type_label if f.nullable else f"{f.type_label} NOT NULL",
                anchor="e",
                font=self._font(8, family="Consolas"),
                fill=_blend("#64748b", opacity),
            )
            handle_color = _blend(f.color or ("#94a3b8" if connecting else "#cbd5e1"), opacity)
            radius = 5 * self.view.zoom
            for hx in (x1, x2):
                self.canvas.create_oval(
                    hx - radius, row_mid - radius, hx + radius, row_mid + radius, fill=handle_color, outline=""
                )

        hx, hy = self._screen(table.handle)
        radius = 6 * self.view.zoom
        self.canvas.create_oval(
            hx - radius,
            hy - radius,
            hx + radius,
            hy + radius,
            fill=_blend("#3b82f6" if connecting else "#94a3b8", table.opacity),
            outline="#ffffff",
        )
