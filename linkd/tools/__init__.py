"""linkd tool adapters package."""

from linkd.tools.email_tools import EmailFinder, find_and_verify_email
from linkd.tools.query_tools import build_queries, generate_search_queries
from linkd.tools.search_tools import duckduckgo_search, serpapi_search, web_search
from linkd.tools.toolbox import Toolbox, default_toolbox
from linkd.tools.user_info import InMemoryProfileStore, get_user_info

__all__ = [
    "EmailFinder",
    "find_and_verify_email",
    "build_queries",
    "generate_search_queries",
    "duckduckgo_search",
    "serpapi_search",
    "web_search",
    "Toolbox",
    "default_toolbox",
    "InMemoryProfileStore",
    "get_user_info",
]
