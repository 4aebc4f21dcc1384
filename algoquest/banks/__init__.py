from .schema import (
    DIFFICULTIES,
    BankItem,
    SignalQuestion,
    PatternCard,
    Scenario,
    ComplexityQuestion,
)
from .loader import AlgorithmNames, QuestionBanks, DEFAULT_FILES, default_banks_dir, load_banks

__all__ = [
    "DIFFICULTIES",
    "BankItem",
    "SignalQuestion",
    "PatternCard",
    "Scenario",
    "ComplexityQuestion",
    "AlgorithmNames",
    "QuestionBanks",
    "DEFAULT_FILES",
    "default_banks_dir",
    "load_banks",
]
