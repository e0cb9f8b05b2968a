"""linkd graph package."""

from linkd.graph.builder import AgentRun, PeopleSearchAgent, build_people_search_graph
from linkd.graph.state import AgentState

__all__ = ["AgentRun", "PeopleSearchAgent", "build_people_search_graph", "AgentState"]
