# gui.py
# PyQt6 GUI wrapper for the HUSRM high-utility sequential rule miner

from __future__ import annotations

import sys
import traceback
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from PyQt6.QtCore import QThread, pyqtSignal
from PyQt6.QtWidgets import (
    QApplication,
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QFileDialog,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QProgressBar,
    QSpinBox,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from algo.config import MiningConfig
from algo.husrm import HUSRM
from utils.memory import MemoryObserver


@dataclass
class RunConfig:
    algorithm_key: str
    input_file: str
    output_file: str
    mining: MiningConfig


class MinerWorker(QThread):
    """Background worker that runs the selected algorithm to avoid blocking the UI."""

    started_log = pyqtSignal(str)
    finished_log = pyqtSignal(str)
    progress_log = pyqtSignal(str)
    error = pyqtSignal(str)
    done = pyqtSignal(int, int, float)  # total_time_ms, rule_count, max_memory_mb

    def __init__(self, cfg: RunConfig, parent=None):
        super().__init__(parent)
        self.cfg = cfg

    def run(self) -> None:
        try:
            self.started_log.emit("Starting mining...\n")
            algo_key = self.cfg.algorithm_key

            # Algorithm registry (easily extensible)
            registry: Dict[str, Callable[[RunConfig], tuple[int, int, float]]] = {
                "husrm": self._run_husrm,
            }

            if algo_key not in registry:
                raise ValueError(f"Unknown algorithm: {algo_key}")

            total_ms, count, memory_mb = registry[algo_key](self.cfg)
            self.finished_log.emit("Mining finished.\n")
            self.done.emit(total_ms, count, memory_mb)
        except Exception as e:
            tb = traceback.format_exc()
            self.error.emit(f"Error: {e}\n\n{tb}")

    # --- Individual runners ---
    def _run_husrm(self, cfg: RunConfig) -> tuple[int, int, float]:
        m = cfg.mining
        algo = HUSRM(m)
        self.progress_log.emit(
            f"Running HUSRM on '{cfg.input_file}' -> '{cfg.output_file}'\n"
        )
        self.progress_log.emit(
            f"minconf = {m.min_confidence}, minutil = {m.min_utility}, "
            f"max antecedent = {m.max_antecedent_size}, max consequent = {m.max_consequent_size}\n"
        )
        algo.run(cfg.input_file, cfg.output_file, MemoryObserver())
        return algo.total_time_ms, algo.rule_count, algo.max_memory_mb


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("High-Utility Sequential Rule Mining")
        self.setMinimumSize(760, 600)

        # --- Widgets ---
        self.combo_algo = QComboBox()
        self.combo_algo.addItems(["husrm"])

        self.le_input = QLineEdit()
        self.le_output = QLineEdit()
        self.btn_browse_input = QPushButton("Browse…")
        self.btn_browse_output = QPushButton("Save as…")

        self.spin_minconf = QDoubleSpinBox()
        self.spin_minconf.setRange(0.0, 1.0)
        self.spin_minconf.setSingleStep(0.05)
        self.spin_minconf.setDecimals(3)
        self.spin_minconf.setValue(MiningConfig.min_confidence)
        self.spin_minconf.setToolTip("Minimum confidence (0–1)")

        self.spin_minutil = QDoubleSpinBox()
        self.spin_minutil.setRange(0.0, 1e12)
        self.spin_minutil.setDecimals(3)
        self.spin_minutil.setValue(MiningConfig.min_utility)
        self.spin_minutil.setToolTip("Minimum rule utility (0 is treated as a small positive value)")

        self.spin_max_ant = QSpinBox()
        self.spin_max_ant.setRange(1, 1000)
        self.spin_max_ant.setValue(MiningConfig.max_antecedent_size)
        self.spin_max_ant.setToolTip("Maximum number of items on the left side")

        self.spin_max_cons = QSpinBox()
        self.spin_max_cons.setRange(1, 1000)
        self.spin_max_cons.setValue(MiningConfig.max_consequent_size)
        self.spin_max_cons.setToolTip("Maximum number of items on the right side")

        self.spin_max_seq = QSpinBox()
        self.spin_max_seq.setRange(0, 2_000_000_000)
        self.spin_max_seq.setValue(0)
        self.spin_max_seq.setToolTip("Maximum number of sequences to load (0 = all)")

        self.chk_prune_items = QCheckBox("Prune unpromising items")
        self.chk_prune_pairs = QCheckBox("Prune unpromising size-2 rules")
        self.chk_bit_vectors = QCheckBox("Bit vectors for sequence ids")
        self.chk_tight_bounds = QCheckBox("Tight expansion bounds")
        for chk in self._strategy_boxes():
            chk.setChecked(True)

        self.btn_run = QPushButton("Run")
        self.btn_run.setDefault(True)

        self.progress = QProgressBar()
        self.progress.setRange(0, 1)  # will switch to busy state (0,0) while running
        self.progress.setValue(0)
        self.progress.setTextVisible(False)

        self.lbl_status = QLabel("Idle")
        self.lbl_status.setStyleSheet("color: #666;")

        self.txt_log = QTextEdit()
        self.txt_log.setReadOnly(True)
        self.txt_log.setPlaceholderText("Logs will appear here…")

        self.lbl_elapsed = QLabel("Elapsed: 0 ms")
        self.lbl_count = QLabel("Rules: 0")
        self.lbl_memory = QLabel("Max memory: 0 MB")

        # --- Layout ---
        form = QFormLayout()
        form.addRow("Algorithm", self.combo_algo)

        in_row = QHBoxLayout()
        in_row.addWidget(self.le_input, 1)
        in_row.addWidget(self.btn_browse_input)
        form.addRow("Input file", in_row)

        out_row = QHBoxLayout()
        out_row.addWidget(self.le_output, 1)
        out_row.addWidget(self.btn_browse_output)
        form.addRow("Output file", out_row)

        form.addRow("minconf", self.spin_minconf)
        form.addRow("minutil", self.spin_minutil)
        form.addRow("Max antecedent size", self.spin_max_ant)
        form.addRow("Max consequent size", self.spin_max_cons)
        form.addRow("Max sequences", self.spin_max_seq)

        params_box = QGroupBox("Run Configuration")
        params_box.setLayout(form)

        strategies = QVBoxLayout()
        for chk in self._strategy_boxes():
            strategies.addWidget(chk)
        strategy_box = QGroupBox("Strategies")
        strategy_box.setLayout(strategies)

        run_row = QHBoxLayout()
        run_row.addWidget(self.btn_run)
        run_row.addWidget(self.progress, 1)
        run_row.addWidget(self.lbl_status)

        stats_row = QHBoxLayout()
        stats_row.addWidget(self.lbl_elapsed)
        stats_row.addSpacing(20)
        stats_row.addWidget(self.lbl_count)
        stats_row.addSpacing(20)
        stats_row.addWidget(self.lbl_memory)
        stats_row.addStretch(1)

        central = QWidget()
        v = QVBoxLayout(central)
        v.addWidget(params_box)
        v.addWidget(strategy_box)
        v.addLayout(run_row)
        v.addLayout(stats_row)
        v.addWidget(self.txt_log, 1)
        self.setCentralWidget(central)

        # --- Signals ---
        self.btn_browse_input.clicked.connect(self.choose_input)
        self.btn_browse_output.clicked.connect(self.choose_output)
        self.btn_run.clicked.connect(self.start_run)

        self.worker: Optional[MinerWorker] = None

    def _strategy_boxes(self) -> list[QCheckBox]:
        return [self.chk_prune_items, self.chk_prune_pairs, self.chk_bit_vectors, self.chk_tight_bounds]

    # --- UI helpers ---
    def choose_input(self):
        path, _ = QFileDialog.getOpenFileName(self, "Choose input file", "", "Text files (*.txt);;All files (*)")
        if path:
            self.le_input.setText(path)

    def choose_output(self):
        path, _ = QFileDialog.getSaveFileName(self, "Save output as", "rules.txt", "Text files (*.txt);;All files (*)")
        if path:
            self.le_output.setText(path)

    def start_run(self):
        if self.worker is not None and self.worker.isRunning():
            QMessageBox.warning(self, "Busy", "A job is already running.")
            return
        input_file = self.le_input.text().strip()
        output_file = self.le_output.text().strip()
        if not input_file:
            QMessageBox.warning(self, "Missing input", "Please choose an input file.")
            return
        if not output_file:
            QMessageBox.warning(self, "Missing output", "Please choose an output file.")
            return

        max_seq = int(self.spin_max_seq.value())
        cfg = RunConfig(
            algorithm_key=self.combo_algo.currentText(),
            input_file=input_file,
            output_file=output_file,
            mining=MiningConfig(
                min_confidence=float(self.spin_minconf.value()),
                min_utility=float(self.spin_minutil.value()),
                max_antecedent_size=int(self.spin_max_ant.value()),
                max_consequent_size=int(self.spin_max_cons.value()),
                max_sequences=max_seq if max_seq > 0 else None,
                prune_items=self.chk_prune_items.isChecked(),
                prune_pairs=self.chk_prune_pairs.isChecked(),
                use_bit_vectors=self.chk_bit_vectors.isChecked(),
                tight_bounds=self.chk_tight_bounds.isChecked(),
            ),
        )

        self.txt_log.clear()
        self.set_running(True)

        self.worker = MinerWorker(cfg)
        self.worker.started_log.connect(self.append_log)
        self.worker.finished_log.connect(self.append_log)
        self.worker.progress_log.connect(self.append_log)
        self.worker.error.connect(self.on_error)
        self.worker.done.connect(self.on_done)
        self.worker.start()

    def set_running(self, running: bool):
        self.btn_run.setEnabled(not running)
        self.btn_browse_input.setEnabled(not running)
        self.btn_browse_output.setEnabled(not running)
        self.combo_algo.setEnabled(not running)
        for widget in (self.spin_minconf, self.spin_minutil, self.spin_max_ant,
                       self.spin_max_cons, self.spin_max_seq, *self._strategy_boxes()):
            widget.setEnabled(not running)
        self.progress.setRange(0, 0 if running else 1)  # busy vs idle
        self.lbl_status.setText("Running…" if running else "Idle")

    def append_log(self, msg: str):
        self.txt_log.append(msg.rstrip())

    def on_error(self, msg: str):
        self.set_running(False)
        self.append_log(msg)
        QMessageBox.critical(self, "Error", msg)

    def on_done(self, total_ms: int, count: int, memory_mb: float):
        self.set_running(False)
        self.lbl_elapsed.setText(f"Elapsed: {total_ms} ms")
        self.lbl_count.setText(f"Rules: {count}")
        self.lbl_memory.setText(f"Max memory: {memory_mb:.1f} MB")
        self.append_log(f"Elapsed: {total_ms} ms; Rules: {count}; Max memory: {memory_mb:.1f} MB\n")
        self.append_log("Done. Output written.")


def main():
    app = QApplication(sys.argv)
    win = MainWindow()
    win.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
