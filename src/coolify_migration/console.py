"""Status markers printed to the operator's terminal."""

SUCCESS = "✅"
FAILURE = "❌"
WARNING = "🚸"
INFO = "ℹ️"


def success(message):
    print(f"{SUCCESS} {message}")


def failure(message):
    print(f"{FAILURE} {message}")


def warning(message):
    print(f"{WARNING} {message}")


def info(message):
    print(f"{INFO} {message}")


def progress():
    print(".", end="", flush=True)
