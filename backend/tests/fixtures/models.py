"""
Test models - a small blog/shop schema owned by teams
"""
from sqlalchemy import Boolean, Column, ForeignKey, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import relationship

from panelkit.database import Base


class Team(Base):
    __tablename__ = "teams"
    __route_key__ = "slug"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, nullable=False)

    def __repr__(self):
        return f"<Team {self.slug}>"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(200), unique=True, nullable=False)
    password = Column(String(200))
    is_admin = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    team_id = Column(Integer, ForeignKey("teams.id"))

    team = relationship("Team")
    posts = relationship("Post", back_populates="author")

    def can_access_tenant(self, tenant: Team) -> bool:
        return self.team_id == tenant.id


class PostCategory(Base):
    __tablename__ = "post_categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"))

    team = relationship("Team")
    posts = relationship("Post", back_populates="category")


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    body = Column(Text, default="")
    author_id = Column(Integer, ForeignKey("users.id"))
    category_id = Column(Integer, ForeignKey("post_categories.id"))
    team_id = Column(Integer, ForeignKey("teams.id"))

    author = relationship("User", back_populates="posts")
    category = relationship("PostCategory", back_populates="posts")
    team = relationship("Team")


class Product(Base):
    """Product whose name is stored per locale: {"en": ..., "fr": ...}"""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(JSON, nullable=False)
    sku = Column(String(50), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"))

    team = relationship("Team")

    translatable = ("name",)

    @classmethod
    def is_translatable_attribute(cls, attribute: str) -> bool:
        return attribute in cls.translatable


class Invoice(Base):
    __tablename__ = "invoices"

    number = Column(Numeric(10, 2), primary_key=True)
    customer = Column(String(100), nullable=False)
