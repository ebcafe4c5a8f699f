from dataclasses import dataclass, field

from kiosk.logger import logger
from kiosk.model.models import AppointmentForm, InterpreterForm


@dataclass
class FormStore:
    """両フローの入力中データを1組だけ保持するストア."""

    appointment: AppointmentForm = field(default_factory=AppointmentForm)
    interpreter: InterpreterForm = field(default_factory=InterpreterForm)

    def clear_all(self) -> None:
        """全フローの個人データを消去する."""
        self.appointment.clear()
        self.interpreter.clear()
        logger.info("Form data cleared for all flows")
