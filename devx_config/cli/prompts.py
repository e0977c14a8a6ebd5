"""Interactive prompts."""


def ask(question: str) -> str:
    return input(question).strip()


def ask_yes_no(question: str) -> bool:
    """Ask until the answer is 'y' or 'n'."""
    while True:
        answer = ask(f"{question} (y/n) ")
        if answer == "y":
            return True
        if answer == "n":
            return False
        print("Response must be one of 'y', 'n'.")
