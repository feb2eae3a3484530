from pydantic import BaseModel


class User(BaseModel):
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    avatar: str | None = None

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
