# Import every model so Base.metadata knows the whole schema.
from skillspark.models.account import Account
from skillspark.models.progress import ProgressEntry
from skillspark.models.quiz import Quiz
from skillspark.models.quiz_answer import QuizAnswer
from skillspark.models.quiz_attempt import QuizAttempt
from skillspark.models.roadmap import Roadmap
from skillspark.models.settings import Settings
from skillspark.models.topic import Topic
from skillspark.models.used_question import UsedQuestion
from skillspark.models.video_page import VideoPage

__all__ = [
    "Account",
    "ProgressEntry",
    "Quiz",
    "QuizAnswer",
    "QuizAttempt",
    "Roadmap",
    "Settings",
    "Topic",
    "UsedQuestion",
    "VideoPage",
]
