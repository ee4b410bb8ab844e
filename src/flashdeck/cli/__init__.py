from .app import AppState, Screen, dispatch, render, run_app

__all__ = ["AppState", "Screen", "dispatch", "render", "run_app"]
