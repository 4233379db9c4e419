from __future__ import annotations

import logging
import sys
from pathlib import Path
from tkinter import END, BooleanVar, StringVar, Text, Tk, filedialog, messagebox, ttk

ROOT_DIR = Path(__file__).resolve().parent
SRC_DIR = ROOT_DIR / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

from batch_groups.io import DEFAULT_EXPORT_FILENAME, read_names_file  # noqa: E402
from batch_groups.models import DEFAULT_GROUP_PREFIX, DISTRIBUTION_MODES, Partition, Settings  # noqa: E402
from batch_groups.reveal import TkTimer  # noqa: E402
from batch_groups.session import SEVERITY_ERROR, GroupingSession, Notification  # noqa: E402
from batch_groups.state import DEFAULT_SETTINGS_PATH, SettingsStore  # noqa: E402


class GroupsGui:
    def __init__(self, root: Tk) -> None:
        self.root = root
        self.root.title("Batch")
        self.root.geometry("1100x760")
        self.root.minsize(860, 560)

        self.store = SettingsStore(DEFAULT_SETTINGS_PATH)
        self.session = GroupingSession(
            self.store,
            TkTimer(self.root),
            notify=self.on_notification,
            on_reveal=self.on_reveal,
            on_finished=self.on_finished,
        )
        settings = self.session.settings

        self.count_var = StringVar(value=str(settings.participant_count))
        self.group_size_var = StringVar(value=str(settings.group_size))
        self.use_names_var = BooleanVar(value=settings.use_custom_names)
        self.prefix_var = StringVar(value=settings.group_prefix)
        self.suspense_var = BooleanVar(value=settings.suspense_mode)
        self.mode_var = StringVar(value=settings.distribution_mode)
        self.exclusions_var = StringVar(value=", ".join(settings.exclusions))
        self.estimate_var = StringVar(value="")

        self.tree_to_slot: dict[str, tuple[int, int | None]] = {}
        self.drag_source: tuple[int, int] | None = None

        self._configure_style()
        self._build_layout()
        self.names_text.insert("1.0", settings.custom_names)
        self.update_estimate()

    def _configure_style(self) -> None:
        style = ttk.Style(self.root)
        if "clam" in style.theme_names():
            style.theme_use("clam")

        style.configure("Root.TFrame", background="#f3f5f8")
        style.configure("Panel.TFrame", background="#ffffff")
        style.configure(
            "Title.TLabel",
            font=("Segoe UI Semibold", 12),
            foreground="#1f2937",
            background="#ffffff",
        )
        style.configure(
            "Muted.TLabel",
            font=("Segoe UI", 9),
            foreground="#64748b",
            background="#ffffff",
        )
        style.configure("Primary.TButton", padding=(10, 7))
        style.configure("TLabelframe", padding=8)
        style.configure("TLabelframe.Label", font=("Segoe UI Semibold", 10))

    def _build_layout(self) -> None:
        root_frame = ttk.Frame(self.root, style="Root.TFrame", padding=10)
        root_frame.pack(fill="both", expand=True)

        outer_pane = ttk.Panedwindow(root_frame, orient="horizontal")
        outer_pane.pack(fill="both", expand=True)

        left_panel = ttk.Frame(outer_pane, style="Panel.TFrame", padding=(8, 8))
        right_panel = ttk.Frame(outer_pane, style="Panel.TFrame", padding=(8, 8))
        outer_pane.add(left_panel, weight=0)
        outer_pane.add(right_panel, weight=1)

        ttk.Label(left_panel, text="Batch", style="Title.TLabel").pack(anchor="w")
        ttk.Label(left_panel, text="Beautifully random.", style="Muted.TLabel").pack(anchor="w", pady=(2, 8))

        config_frame = ttk.LabelFrame(left_panel, text="Configuration")
        config_frame.pack(fill="x")
        ttk.Checkbutton(
            config_frame,
            text="Use custom names",
            variable=self.use_names_var,
            command=self.update_estimate,
        ).grid(row=0, column=0, columnspan=2, sticky="w", pady=4)
        self._add_row(config_frame, 1, "Total participants", self.count_var)
        ttk.Label(config_frame, text="Names (one per line)").grid(row=2, column=0, sticky="nw", padx=(0, 8), pady=4)
        self.names_text = Text(config_frame, width=30, height=8)
        self.names_text.grid(row=2, column=1, sticky="we", pady=4)
        self.names_text.bind("<KeyRelease>", lambda _: self.update_estimate())
        ttk.Button(config_frame, text="Import", command=self.import_names, width=9).grid(
            row=2, column=2, sticky="n", padx=(8, 0), pady=4
        )
        self._add_row(config_frame, 3, "Exclude (comma separated)", self.exclusions_var)
        self._add_row(config_frame, 4, "Group size", self.group_size_var)
        self._add_row(config_frame, 5, "Group name prefix", self.prefix_var)
        ttk.Label(config_frame, text="Distribution").grid(row=6, column=0, sticky="w", padx=(0, 8), pady=4)
        mode_combo = ttk.Combobox(
            config_frame,
            textvariable=self.mode_var,
            state="readonly",
            values=list(DISTRIBUTION_MODES),
            width=16,
        )
        mode_combo.grid(row=6, column=1, sticky="w", pady=4)
        ttk.Checkbutton(
            config_frame,
            text="Suspense mode (reveal groups one by one)",
            variable=self.suspense_var,
        ).grid(row=7, column=0, columnspan=2, sticky="w", pady=4)
        ttk.Label(config_frame, textvariable=self.estimate_var, style="Muted.TLabel").grid(
            row=8, column=0, columnspan=3, sticky="w", pady=(6, 0)
        )

        action_frame = ttk.LabelFrame(left_panel, text="Actions")
        action_frame.pack(fill="x", pady=(8, 0))
        self.generate_button = ttk.Button(
            action_frame,
            text="Generate Groups",
            command=self.generate,
            style="Primary.TButton",
            width=16,
        )
        self.generate_button.grid(row=0, column=0, padx=(0, 6), pady=(2, 6), sticky="ew")
        ttk.Button(
            action_frame,
            text="Download",
            command=self.download,
            style="Primary.TButton",
            width=16,
        ).grid(row=0, column=1, pady=(2, 6), sticky="ew")
        action_frame.grid_columnconfigure(0, weight=1)
        action_frame.grid_columnconfigure(1, weight=1)

        log_frame = ttk.LabelFrame(left_panel, text="Log")
        log_frame.pack(fill="both", expand=True, pady=(8, 0))
        self.log = ttk.Treeview(log_frame, columns=("message",), show="headings", height=6)
        self.log.heading("message", text="message")
        self.log.column("message", width=340, anchor="w")
        self.log.pack(side="left", fill="both", expand=True)

        ttk.Label(right_panel, text="Generated Groups", style="Title.TLabel").pack(anchor="w")
        self.tree = ttk.Treeview(right_panel, columns=("member",), show="tree headings", selectmode="browse")
        self.tree.heading("#0", text="group")
        self.tree.heading("member", text="member")
        self.tree.column("#0", width=160, anchor="w")
        self.tree.column("member", width=320, anchor="w")
        self.tree.pack(fill="both", expand=True, pady=(8, 0))
        self.tree.bind("<ButtonPress-1>", self.on_drag_start)
        self.tree.bind("<ButtonRelease-1>", self.on_drag_drop)

        move_bar = ttk.Frame(right_panel, style="Panel.TFrame")
        move_bar.pack(fill="x", pady=(6, 0))
        ttk.Button(move_bar, text="Up", command=lambda: self.shift_selected(-1), width=8).pack(side="left")
        ttk.Button(move_bar, text="Down", command=lambda: self.shift_selected(1), width=8).pack(side="left", padx=(6, 0))
        ttk.Label(
            move_bar,
            text="Drag a member onto another member or group to move it.",
            style="Muted.TLabel",
        ).pack(side="left", padx=(12, 0))

    def _add_row(self, parent: ttk.LabelFrame, row: int, label: str, variable: StringVar) -> None:
        ttk.Label(parent, text=label).grid(row=row, column=0, sticky="w", padx=(0, 8), pady=4)
        entry = ttk.Entry(parent, textvariable=variable, width=30)
        entry.grid(row=row, column=1, sticky="we", pady=4)
        entry.bind("<KeyRelease>", lambda _: self.update_estimate())
        parent.grid_columnconfigure(1, weight=1)

    def _append_log(self, message: str) -> None:
        self.log.insert("", 0, values=(message,))
        entries = self.log.get_children()
        if len(entries) > 300:
            for item in entries[300:]:
                self.log.delete(item)

    def collect_settings(self) -> Settings | None:
        try:
            count = int(self.count_var.get().strip() or 0)
            group_size = int(self.group_size_var.get().strip() or 0)
        except ValueError:
            return None
        exclusions = [token.strip() for token in self.exclusions_var.get().split(",") if token.strip()]
        return Settings(
            participant_count=count,
            group_size=group_size,
            use_custom_names=self.use_names_var.get(),
            custom_names=self.names_text.get("1.0", END).rstrip("\n"),
            group_prefix=self.prefix_var.get().strip() or DEFAULT_GROUP_PREFIX,
            suspense_mode=self.suspense_var.get(),
            distribution_mode=self.mode_var.get(),
            exclusions=exclusions,
            reveal_interval=self.session.settings.reveal_interval,
        )

    def update_estimate(self) -> None:
        settings = self.collect_settings()
        if settings is None or settings.group_size <= 0:
            self.estimate_var.set("Enter whole numbers for participants and group size.")
            return
        estimated, remainder = self.session.estimate(settings)
        text = f"Estimated groups: {estimated}"
        if remainder:
            text += f"   Remaining participants: {remainder}"
        self.estimate_var.set(text)

    def import_names(self) -> None:
        file_path = filedialog.askopenfilename(
            filetypes=[
                ("Name lists", "*.txt *.csv *.xlsx"),
                ("All files", "*.*"),
            ]
        )
        if not file_path:
            return
        try:
            names = read_names_file(Path(file_path))
        except (OSError, ValueError, RuntimeError) as exc:
            messagebox.showerror("Import failed", str(exc))
            return
        self.names_text.delete("1.0", END)
        self.names_text.insert("1.0", "\n".join(names))
        self.use_names_var.set(True)
        self.update_estimate()
        self._append_log(f"Imported {len(names)} names from {file_path}")

    def generate(self) -> None:
        settings = self.collect_settings()
        if settings is None:
            messagebox.showerror("Invalid input", "Participants and group size must be whole numbers.")
            return
        if self.session.generate(settings) is not None:
            self.render_groups()

    def download(self) -> None:
        if self.session.partition is None:
            return
        file_path = filedialog.asksaveasfilename(
            initialfile=DEFAULT_EXPORT_FILENAME,
            defaultextension=".txt",
            filetypes=[("Text files", "*.txt"), ("Excel files", "*.xlsx"), ("All files", "*.*")],
        )
        if not file_path:
            return
        self.session.export(Path(file_path))
        self._append_log(f"Groups saved as {Path(file_path).name}")

    def on_notification(self, notification: Notification) -> None:
        self._append_log(notification.message)
        if notification.severity == SEVERITY_ERROR:
            messagebox.showerror(notification.name.replace("_", " ").capitalize(), notification.message)

    def on_reveal(self, count: int) -> None:
        self.render_groups(count)

    def on_finished(self, partition: Partition) -> None:
        self._append_log(f"All {len(partition.groups)} groups revealed.")

    def render_groups(self, revealed: int | None = None) -> None:
        for item in self.tree.get_children():
            self.tree.delete(item)
        self.tree_to_slot.clear()

        partition = self.session.partition
        if partition is None:
            return
        if revealed is None:
            revealed = self.session.scheduler.revealed
        prefix = self.session.settings.group_prefix
        for position, group in enumerate(partition.groups):
            if position >= revealed:
                break
            group_item = self.tree.insert("", END, text=group.label(prefix), open=True)
            self.tree_to_slot[str(group_item)] = (group.id, None)
            for index, member in enumerate(group.members):
                member_item = self.tree.insert(group_item, END, text="", values=(member,))
                self.tree_to_slot[str(member_item)] = (group.id, index)

    def _selected_member(self) -> tuple[int, int] | None:
        selection = self.tree.selection()
        if not selection:
            return None
        group_id, index = self.tree_to_slot.get(str(selection[0]), (0, None))
        if index is None:
            return None
        return group_id, index

    def shift_selected(self, step: int) -> None:
        selected = self._selected_member()
        if selected is None:
            return
        group_id, index = selected
        group = self.session.partition.group(group_id) if self.session.partition else None
        if group is None or not 0 <= index + step < len(group.members):
            return
        if self.session.reorder_member(group_id, index, index + step):
            self.render_groups()
            self._select_slot(group_id, index + step)

    def _select_slot(self, group_id: int, index: int) -> None:
        for item_id, slot in self.tree_to_slot.items():
            if slot == (group_id, index):
                self.tree.selection_set(item_id)
                break

    def on_drag_start(self, event: object) -> None:
        item_id = self.tree.identify_row(int(getattr(event, "y", 0)))
        slot = self.tree_to_slot.get(str(item_id)) if item_id else None
        if slot is None or slot[1] is None or self.session.scheduler.active:
            self.drag_source = None
            return
        self.drag_source = (slot[0], slot[1])

    def on_drag_drop(self, event: object) -> None:
        source = self.drag_source
        self.drag_source = None
        if source is None:
            return
        item_id = self.tree.identify_row(int(getattr(event, "y", 0)))
        target = self.tree_to_slot.get(str(item_id)) if item_id else None
        if target is None or target == source:
            return

        partition = self.session.partition
        if partition is None:
            return
        source_group_id, source_index = source
        dest_group_id, dest_index = target
        if dest_index is None:
            # Dropped on a group header: append to the end of that group.
            dest_size = len(partition.group(dest_group_id).members)
            dest_index = dest_size - 1 if dest_group_id == source_group_id else dest_size
        moved = self.session.move_member(source_group_id, source_index, dest_group_id, dest_index)
        if moved:
            self.render_groups()
            self._select_slot(dest_group_id, dest_index)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    root = Tk()
    GroupsGui(root)
    root.mainloop()


if __name__ == "__main__":
    main()
