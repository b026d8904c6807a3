"""Typed models used across the application."""

from .article import Article, ArticleStatus, QualityScore
from .topic import KeywordSelection, Topic, TopicPriority

__all__ = ["Article", "ArticleStatus", "QualityScore", "KeywordSelection", "Topic", "TopicPriority"]
