"""
Query External Service Adapters
================================

Bedrock knowledge base adapter for the query module.
"""

from typing import Any, List, Optional

from supportgpt.config import Settings
from supportgpt.core import ConfigurationException, KnowledgeBaseException
from supportgpt.infrastructure.aws import AWS_ERRORS, create_client, describe_aws_error
from supportgpt.ingestion.domain import ArtifactFormatter
from supportgpt.query.application import CaseQueryService, IKnowledgeBase
from supportgpt.query.domain import CaseCitation, GeneratedAnswer
from supportgpt.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


class BedrockKnowledgeBase(IKnowledgeBase):
    """
    ``bedrock-agent-runtime.retrieve_and_generate`` over the case bucket.

    Cited case IDs are read from the ``Case ID:`` headers in each
    retrieved passage, falling back to the IDs encoded in the source
    object's batch file name.
    """

    def __init__(
        self,
        client: Any,
        knowledge_base_id: str,
        model_arn: str,
        max_tokens: int = 2000
    ):
        self._client = client
        self._knowledge_base_id = knowledge_base_id
        self._model_arn = model_arn
        self._max_tokens = max_tokens

    @classmethod
    def from_settings(cls, config: Settings, client: Optional[Any] = None) -> "BedrockKnowledgeBase":
        """
        Raises:
            ConfigurationException: If knowledge base or model is not configured
        """
        if not config.knowledge_base_id or not config.bedrock_model_id:
            raise ConfigurationException("KNOWLEDGE_BASE_ID and BEDROCK_MODEL_ID must be set")
        return cls(
            client or create_client("bedrock-agent-runtime"),
            knowledge_base_id=config.knowledge_base_id,
            model_arn=model_arn_for(config.bedrock_model_id, config.aws_region),
            max_tokens=config.max_tokens
        )

    async def retrieve_and_generate(self, query: str) -> GeneratedAnswer:
        try:
            with log_latency(logger, "retrieve_and_generate"):
                response = self._client.retrieve_and_generate(
                    input={"text": query},
                    retrieveAndGenerateConfiguration={
                        "type": "KNOWLEDGE_BASE",
                        "knowledgeBaseConfiguration": {
                            "knowledgeBaseId": self._knowledge_base_id,
                            "modelArn": self._model_arn,
                            "generationConfiguration": {
                                "inferenceConfig": {
                                    "textInferenceConfig": {
                                        "maxTokens": self._max_tokens,
                                        "temperature": 0.0
                                    }
                                }
                            }
                        }
                    }
                )
        except AWS_ERRORS as e:
            raise KnowledgeBaseException(
                f"retrieve_and_generate failed: {describe_aws_error(e)}"
            ) from e

        return GeneratedAnswer(
            text=response.get("output", {}).get("text", ""),
            citations=self._parse_citations(response.get("citations", []))
        )

    @staticmethod
    def _parse_citations(citations: List[dict]) -> List[CaseCitation]:
        parsed = []
        for citation in citations:
            for reference in citation.get("retrievedReferences", []):
                snippet = reference.get("content", {}).get("text", "")
                uri = reference.get("location", {}).get("s3Location", {}).get("uri", "")
                case_ids = (
                    ArtifactFormatter.case_ids_in_text(snippet)
                    or ArtifactFormatter.case_ids_from_name(uri)
                )
                parsed.append(CaseCitation(case_ids=case_ids, snippet=snippet, source_uri=uri))
        return parsed


def model_arn_for(model_id: str, region: str) -> str:
    """Foundation model ARN for a bare model ID; ARNs pass through."""
    if model_id.startswith("arn:"):
        return model_id
    return f"arn:aws:bedrock:{region}::foundation-model/{model_id}"


def create_query_service(config: Settings) -> Optional[CaseQueryService]:
    """Query service over the configured knowledge base, or None when none is configured."""
    try:
        knowledge_base = BedrockKnowledgeBase.from_settings(config)
    except ConfigurationException as e:
        logger.info(f"Query service not configured: {e.message}")
        return None
    return CaseQueryService(knowledge_base)
