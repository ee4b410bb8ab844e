from .study import StudyFlow, build_session

__all__ = ["StudyFlow", "build_session"]
