"""
Semantic Search Tool
Exposes the retrieval gateway to the model as a callable tool.
"""
from typing import Dict, Any, List, Optional, TYPE_CHECKING
import logging

from .base import BaseTool, ToolContext

if TYPE_CHECKING:
    from ..retrieval import RetrievalGateway

logger = logging.getLogger(__name__)


class SemanticSearchTool(BaseTool):
    """
    Tool for similarity search over stored documents.
    Wraps RetrievalGateway.retrieve; RetrievalError fails the call.
    """

    def __init__(
        self,
        gateway: "RetrievalGateway",
        default_limit: int = 5,
        default_threshold: float = 0.7
    ):
        self._gateway = gateway
        self.default_limit = default_limit
        self.default_threshold = default_threshold
        super().__init__(
            name="semantic_search",
            description="""Search the knowledge base using semantic similarity.
Use this tool to find documents related to a query.
Returns the most relevant texts with their similarity and metadata."""
        )

    def _get_default_schema(self) -> Dict[str, Any]:
        return {
            "query": {
                "type": "string",
                "required": True,
                "description": "The search query (natural language)"
            },
            "limit": {
                "type": "integer",
                "description": f"Number of results to return (default: {self.default_limit})"
            },
            "threshold": {
                "type": "number",
                "description": "Minimum similarity in [0, 1]"
            }
        }

    async def execute(self, arguments: Dict[str, Any], context: ToolContext) -> List[Dict[str, Any]]:
        query: str = arguments["query"]
        limit: Optional[int] = arguments.get("limit")
        threshold: Optional[float] = arguments.get("threshold")

        documents = await self._gateway.retrieve(
            query,
            limit=limit if limit is not None else self.default_limit,
            similarity_threshold=threshold if threshold is not None else self.default_threshold
        )
        logger.debug(f"[SemanticSearchTool] {len(documents)} document(s) for conversation {context.conversation_id}")

        return [
            {
                "document_id": doc.document_id,
                "text": doc.text,
                "similarity": round(doc.similarity, 4),
                "metadata": doc.metadata
            }
            for doc in documents
        ]
