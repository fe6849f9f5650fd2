from app.models.form_session import FormSession

__all__ = ["FormSession"]
