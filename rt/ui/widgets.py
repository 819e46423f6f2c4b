"""Row widget builders: the clock header, runner rows, and the split log table.

Each builder returns a (container, widget_dict) tuple. The container is a
QWidget that can be inserted into a layout. The widget_dict maps logical
names to sub-widgets for later updates.
"""

from dataclasses import dataclass

from PySide6.QtCore import Qt
from PySide6.QtGui import QBrush, QColor, QFont
from PySide6.QtWidgets import (
    QAbstractItemView,
    QComboBox,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QPushButton,
    QSizePolicy,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from rt.core.stats import PACE_OFF, PACE_ON, classify_pace, is_best_lap
from rt.ui.theme import podium_color
from rt.util import format_time

LOG_COLUMNS = ["Runner", "Lap #", "Lap", "Total", "Status", ""]


@dataclass
class BuildContext:
    """Fonts and colors shared across all builders in one rebuild pass."""
    theme: dict
    font_family: str
    clock_font: QFont
    label_font: QFont
    bold_label_font: QFont
    action_font: QFont
    small_font: QFont

    @staticmethod
    def compute(theme, font_family):
        bold_label = QFont(font_family, 13)
        bold_label.setBold(True)
        clock_font = QFont(font_family, 40)
        clock_font.setBold(True)
        clock_font.setStyleHint(QFont.Monospace)
        return BuildContext(
            theme=theme,
            font_family=font_family,
            clock_font=clock_font,
            label_font=QFont(font_family, 12),
            bold_label_font=bold_label,
            action_font=QFont(font_family, 11),
            small_font=QFont(font_family, 9),
        )


def _button(ctx, text, on_click, tooltip=None, font=None):
    btn = QPushButton(text)
    btn.setFont(font or ctx.action_font)
    btn.clicked.connect(lambda _=False: on_click())
    if tooltip:
        btn.setToolTip(tooltip)
    return btn


def build_header(ctx, target_pace, on_toggle, on_reset, on_add, on_delete_all,
                 on_template, on_import, on_export, on_analyze, on_config,
                 on_target_changed):
    """Build the clock display and the race-wide controls.

    Returns (container, widget_dict).
    """
    header = QWidget()
    lay = QVBoxLayout(header)
    lay.setContentsMargins(0, 0, 0, 0)

    clock_lbl = QLabel(format_time(0))
    clock_lbl.setFont(ctx.clock_font)
    clock_lbl.setAlignment(Qt.AlignCenter)
    lay.addWidget(clock_lbl)

    # Row 1: clock control
    row = QHBoxLayout()
    toggle_btn = _button(ctx, "Start", on_toggle, font=ctx.bold_label_font)
    reset_btn = _button(ctx, "Reset", on_reset, "Reset the clock and clear all race data")
    row.addStretch()
    row.addWidget(toggle_btn)
    row.addWidget(reset_btn)
    row.addStretch()
    lay.addLayout(row)

    # Row 2: roster and data
    row = QHBoxLayout()
    add_btn = _button(ctx, "Add Runner", on_add, "Add a runner manually")
    delete_all_btn = _button(ctx, "Delete All", on_delete_all, "Remove every runner from the list")
    template_btn = _button(ctx, "Template", on_template, "Save a sample name list for importing")
    import_btn = _button(ctx, "Import", on_import, "Import runner names from a CSV/TXT file, one per line")
    export_btn = _button(ctx, "Export CSV", on_export, "Save all splits with rankings as CSV")
    analyze_btn = _button(ctx, "Analyze", on_analyze, "Ask the analysis service for coaching notes")
    cfg_btn = _button(ctx, "⚙", on_config, "Settings")

    target_lbl = QLabel("Target lap:")
    target_lbl.setFont(ctx.action_font)
    target_input = QLineEdit(target_pace)
    target_input.setFont(ctx.action_font)
    target_input.setPlaceholderText("MM:SS")
    target_input.setMaximumWidth(70)
    target_input.setToolTip("Laps at or under this time are marked on pace")
    target_input.textChanged.connect(on_target_changed)

    for w in (add_btn, delete_all_btn, template_btn, import_btn):
        row.addWidget(w)
    row.addStretch()
    row.addWidget(target_lbl)
    row.addWidget(target_input)
    for w in (export_btn, analyze_btn, cfg_btn):
        row.addWidget(w)
    lay.addLayout(row)

    widget_dict = {
        "clock": clock_lbl, "toggle": toggle_btn, "reset": reset_btn,
        "add": add_btn, "delete_all": delete_all_btn,
        "template": template_btn, "import": import_btn,
        "export": export_btn, "analyze": analyze_btn, "cfg": cfg_btn,
        "target": target_input,
    }
    return header, widget_dict


def build_runner_row(ctx, runner, placement, stats, running, names_locked,
                     on_split, on_finish, on_remove, on_rename):
    """Build one runner row.

    Returns (container, widget_dict).
    """
    t = ctx.theme
    rid = runner.id
    rc = QWidget()
    rc.setObjectName("runnerRow")
    row_bg = t["finished_bg"] if runner.finished else t["panel_bg"]
    rc.setStyleSheet(
        f"#runnerRow {{ background-color: {row_bg}; border-bottom: 1px solid {t['separator']}; }}")
    rc_lay = QHBoxLayout(rc)
    rc_lay.setContentsMargins(6, 4, 6, 4)

    # Col 0: name (locked once the clock has run)
    name_input = QLineEdit(runner.name)
    name_input.setFont(ctx.bold_label_font)
    name_input.setEnabled(not names_locked)
    name_input.setMinimumWidth(160)
    name_input.editingFinished.connect(
        lambda w=name_input: on_rename(rid, w.text()))
    rc_lay.addWidget(name_input, 1)

    # Col 1: rank badge
    rank_lbl = QLabel(placement.label if placement else "")
    rank_lbl.setFont(ctx.action_font)
    if placement:
        rank_lbl.setStyleSheet(
            f"color: {podium_color(t, placement.rank)}; font-weight: bold;")
    rc_lay.addWidget(rank_lbl)

    # Col 2: last lap / final time
    if runner.finished:
        info = f"Finish {format_time(runner.final_time)}"
    elif runner.splits:
        last = runner.splits[-1]
        info = f"Lap {last.index}: {format_time(last.lap)}"
    else:
        info = "No splits yet"
    info_lbl = QLabel(info)
    info_lbl.setFont(ctx.label_font)
    info_lbl.setMinimumWidth(150)
    rc_lay.addWidget(info_lbl)

    # Col 3: stats
    if stats is not None:
        stats_text = f"Best {format_time(stats.min_lap)} | Avg {format_time(stats.avg_lap)}"
    else:
        stats_text = ""
    stats_lbl = QLabel(stats_text)
    stats_lbl.setFont(ctx.small_font)
    stats_lbl.setStyleSheet(f"color: {t['muted_text']};")
    stats_lbl.setMinimumWidth(170)
    rc_lay.addWidget(stats_lbl)

    # Col 4: Split / Finish, hidden once finished
    split_btn = _button(ctx, "Split", lambda: on_split(rid), font=ctx.bold_label_font)
    split_btn.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
    split_btn.setEnabled(running)
    finish_btn = _button(ctx, "Finish", lambda: on_finish(rid), font=ctx.bold_label_font)
    finish_btn.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
    finish_btn.setEnabled(running or names_locked)
    split_btn.setVisible(not runner.finished)
    finish_btn.setVisible(not runner.finished)
    rc_lay.addWidget(split_btn)
    rc_lay.addWidget(finish_btn)

    # Col 5: remove
    x_btn = _button(ctx, "X", lambda: on_remove(rid), "Remove this runner")
    x_btn.setFixedWidth(32)
    rc_lay.addWidget(x_btn)

    widget_dict = {
        "name": name_input, "rank": rank_lbl, "info": info_lbl,
        "stats": stats_lbl, "split": split_btn, "finish": finish_btn,
        "x": x_btn, "container": rc,
    }
    return rc, widget_dict


def build_log_controls(ctx, runners, selected_runner_id, sort_mode, view_mode,
                       on_filter, on_sort_toggle, on_view_toggle):
    """Build the filter / sort / view controls above the split log.

    Returns (container, widget_dict).
    """
    bar = QWidget()
    lay = QHBoxLayout(bar)
    lay.setContentsMargins(0, 0, 0, 0)

    title = QLabel("Split Log")
    title.setFont(ctx.bold_label_font)
    lay.addWidget(title)
    lay.addStretch()

    runner_filter = QComboBox()
    runner_filter.setFont(ctx.action_font)
    runner_filter.addItem("All runners", None)
    for r in runners:
        runner_filter.addItem(r.name, r.id)
    idx = runner_filter.findData(selected_runner_id)
    runner_filter.setCurrentIndex(idx if idx >= 0 else 0)
    runner_filter.currentIndexChanged.connect(
        lambda i, w=runner_filter: on_filter(w.itemData(i)))
    lay.addWidget(runner_filter)

    sort_btn = _button(ctx, "Per Runner" if sort_mode == "grouped" else "Live Feed",
                       on_sort_toggle, "Switch between per-runner and newest-first order")
    view_btn = _button(ctx, "Chart" if view_mode == "table" else "Table",
                       on_view_toggle, "Switch between the table and the lap chart")
    lay.addWidget(sort_btn)
    lay.addWidget(view_btn)

    widget_dict = {"filter": runner_filter, "sort": sort_btn, "view": view_btn}
    return bar, widget_dict


def build_log_table(ctx):
    table = QTableWidget(0, len(LOG_COLUMNS))
    table.setHorizontalHeaderLabels(LOG_COLUMNS)
    table.setFont(ctx.label_font)
    table.verticalHeader().setVisible(False)
    table.setEditTriggers(QAbstractItemView.NoEditTriggers)
    table.setSelectionMode(QAbstractItemView.NoSelection)
    header = table.horizontalHeader()
    header.setSectionResizeMode(0, QHeaderView.Stretch)
    for col in range(1, len(LOG_COLUMNS)):
        header.setSectionResizeMode(col, QHeaderView.ResizeToContents)
    return table


def fill_log_table(ctx, table, rows, stats, target_ms, on_delete):
    """Repopulate the split log table from stats.split_log() rows."""
    t = ctx.theme
    table.setRowCount(len(rows))
    for r, row in enumerate(rows):
        split = row.split
        best = is_best_lap(split, stats.get(row.runner_id))
        pace = classify_pace(split, target_ms)

        lap_text = format_time(split.lap) + ("  ★" if best else "")
        cells = [
            row.runner_name,
            str(split.index),
            lap_text,
            format_time(split.total),
            "Finish" if split.is_finish else "Split",
        ]
        for c, text in enumerate(cells):
            item = QTableWidgetItem(text)
            if c > 0:
                item.setTextAlignment(Qt.AlignCenter)
            if split.is_finish:
                item.setBackground(QBrush(QColor(t["finish_row"])))
            table.setItem(r, c, item)

        lap_item = table.item(r, 2)
        if pace == PACE_ON:
            lap_item.setBackground(QBrush(QColor(t["pace_on"])))
        elif pace == PACE_OFF:
            lap_item.setBackground(QBrush(QColor(t["pace_off"])))
        if best:
            f = lap_item.font()
            f.setBold(True)
            lap_item.setFont(f)
            lap_item.setForeground(QBrush(QColor(t["best_lap"])))

        del_btn = QPushButton("X")
        del_btn.setFont(ctx.small_font)
        del_btn.setToolTip("Delete this split")
        del_btn.clicked.connect(
            lambda _=False, rid=row.runner_id, uid=split.uid: on_delete(rid, uid))
        table.setCellWidget(r, len(LOG_COLUMNS) - 1, del_btn)
