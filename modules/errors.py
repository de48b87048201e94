# modules/errors.py

class InvalidInputError(ValueError):
    """
    A symbol's records can't be analysed as given.
    Carries symbol / date / field so the caller can find the bad record.
    """

    def __init__(self, message: str, symbol: str = None, date=None, field: str = None):
        self.symbol = symbol
        self.date   = date
        self.field  = field

        context = []
        if symbol is not None:
            context.append(f"symbol={symbol}")
        if date is not None:
            context.append(f"date={date}")
        if field is not None:
            context.append(f"field={field}")

        suffix = f" ({', '.join(context)})" if context else ""
        super().__init__(f"[MSE] {message}{suffix}")


class ConfigurationError(ValueError):
    """Settings rejected before the run starts."""

    def __init__(self, message: str, setting: str = None):
        self.setting = setting
        super().__init__(f"[MSE] Invalid configuration: {message}")


class AnalysisCancelled(RuntimeError):
    """The caller asked the run to stop before every symbol finished."""
