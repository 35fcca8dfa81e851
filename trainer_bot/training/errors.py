"""Errors raised by the training engine, store and scheduler"""


class TrainerError(Exception):
    pass


class NotInitialized(TrainerError):
    def __init__(self, user_id, kind):
        self.user_id = user_id
        self.kind = kind
        super().__init__(f"Training row for NPC {kind.value} not found for user {user_id}. Run /start first.")


class RentalInactive(TrainerError):
    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"NPC {kind.value} rental is not active")


class InsufficientRentalTime(TrainerError):
    def __init__(self, kind, required_hours, available_hours):
        self.kind = kind
        self.required_hours = required_hours
        self.available_hours = available_hours
        super().__init__(
            f"NPC {kind.value} rental ends in {available_hours:.2f}h, "
            f"a training cycle needs {required_hours:.2f}h"
        )


class InvalidCallbackData(TrainerError, ValueError):
    def __init__(self, data):
        self.data = data
        super().__init__(f"Invalid callback data: {data!r}")


class AcceleratedModeForbidden(TrainerError):
    def __init__(self):
        super().__init__("Test mode cannot be enabled in production environment")


class StorageError(TrainerError):
    pass


class NotificationDeliveryError(TrainerError):
    pass
