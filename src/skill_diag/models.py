"""Data classes for the diagnostic test domain model."""
from dataclasses import dataclass, field
from typing import Optional

CATEGORIES = ("Quantitative", "Logical", "Verbal", "Technical")
DIFFICULTIES = ("easy", "medium", "hard")
ROLES = ("admin", "moderator", "student")

# Reserved snapshot label; never a real category.
OVERALL = "Overall"

STRONG_THRESHOLD = 70
WEAK_THRESHOLD = 50


@dataclass
class Question:
    id: str
    category: str
    topic: str
    prompt: str
    options: list[str]
    correct_answer: str
    difficulty: str = "medium"
    created_at: Optional[str] = None


@dataclass
class AnswerRecord:
    id: str
    user_id: str
    question_id: str
    selected_option: str
    is_correct: bool
    answered_at: Optional[str] = None


@dataclass
class TestResultSnapshot:
    id: str
    user_id: str
    category: str
    score: int
    total_questions: int
    accuracy: int
    weak_topics: list[str] = field(default_factory=list)
    strong_topics: list[str] = field(default_factory=list)
    created_at: Optional[str] = None


@dataclass
class UserProfile:
    user_id: str
    name: str
    email: str
    role: str = "student"
    created_at: Optional[str] = None


@dataclass
class CategoryResult:
    correct: int = 0
    total: int = 0
    percentage: int = 0
    is_strong: bool = False
    is_weak: bool = False

    @property
    def label(self) -> str:
        if self.is_strong:
            return "strong"
        if self.is_weak:
            return "weak"
        return "average"


@dataclass
class ScoreReport:
    """Outcome of scoring one completed test.

    ``categories`` keeps first-seen order of the categories in the test.
    ``correctness`` is parallel to the scored question sequence.
    """
    total_score: int
    total_correct: int
    total_questions: int
    categories: dict[str, CategoryResult]
    correctness: list[bool] = field(default_factory=list)

    @property
    def weak_topics(self) -> list[str]:
        return [name for name, c in self.categories.items() if c.is_weak]

    @property
    def strong_topics(self) -> list[str]:
        return [name for name, c in self.categories.items() if c.is_strong]

    def to_dict(self) -> dict:
        return {
            "totalScore": self.total_score,
            "totalCorrect": self.total_correct,
            "totalQuestions": self.total_questions,
            "categoryResults": {
                name: {
                    "correct": c.correct,
                    "total": c.total,
                    "percentage": c.percentage,
                    "isStrong": c.is_strong,
                    "isWeak": c.is_weak,
                }
                for name, c in self.categories.items()
            },
            "correctness": list(self.correctness),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScoreReport":
        categories = {
            name: CategoryResult(
                correct=c["correct"],
                total=c["total"],
                percentage=c["percentage"],
                is_strong=c["isStrong"],
                is_weak=c["isWeak"],
            )
            for name, c in data["categoryResults"].items()
        }
        return cls(
            total_score=data["totalScore"],
            total_correct=data["totalCorrect"],
            total_questions=data["totalQuestions"],
            categories=categories,
            correctness=list(data.get("correctness", [])),
        )
