from .base_agent import BaseAgent
from .ingestion_agent import IngestionAgent
from .query_planning_agent import QueryPlanningAgent
from .retrieval_agent import RetrievalAgent
from .answering_agent import AnsweringAgent
from .agglutination_agent import AgglutinationAgent

__all__ = [
    "BaseAgent",
    "IngestionAgent",
    "QueryPlanningAgent",
    "RetrievalAgent",
    "AnsweringAgent",
    "AgglutinationAgent",
]
