"""Main entry point for the Crumb Chase viewer."""

import sys
import os
import signal
import argparse
from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt


def main():
    """Open the game window."""
    parser = argparse.ArgumentParser(description="Crumb Chase - play or watch the agent learn")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the random source")
    parser.add_argument("--checkpoint-dir", type=str, default="training_checkpoints",
                        help="Directory for saved agents")
    args = parser.parse_args()

    os.environ.setdefault('QT_LOGGING_RULES', 'qt.qpa.backingstore=false')
    QApplication.setHighDpiScaleFactorRoundingPolicy(Qt.HighDpiScaleFactorRoundingPolicy.Floor)

    app = QApplication(sys.argv[:1])
    app.setApplicationName("Crumb Chase")
    app.setApplicationVersion("1.0.0")

    # Import UI components (after QApplication is created)
    from .ui.main_window import MainWindow
    from .app.controller import GameController

    controller = GameController(seed=args.seed, checkpoints_dir=args.checkpoint_dir)
    window = MainWindow(controller)

    def signal_handler(sig, frame):
        print(f"\nReceived signal {sig}, shutting down...")
        controller.cleanup()
        window.close()
        app.quit()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        window.show()
        controller.start()
        return app.exec()
    finally:
        controller.cleanup()


if __name__ == "__main__":
    sys.exit(main())
