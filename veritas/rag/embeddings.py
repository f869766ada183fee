from ibm_watsonx_ai import Credentials
from ibm_watsonx_ai.foundation_models import Embeddings as WXEmbeddings
from ibm_watsonx_ai.metanames import EmbedTextParamsMetaNames as EmbedParams

from veritas.config import Settings
from veritas.models import EmbeddingResult
from veritas.rag.interfaces import EmbeddingProvider


class EmbeddingClient(EmbeddingProvider):
    def __init__(self, settings: Settings):
        self.settings = settings
        credentials = Credentials(
            api_key=settings.ibm_cloud_api_key,
            url=f"https://{settings.watsonx_region}.ml.cloud.ibm.com",
        )
        self.client = WXEmbeddings(
            model_id=settings.watsonx_embed_model,
            project_id=settings.watsonx_project_id,
            credentials=credentials,
        )

    @staticmethod
    def _extract_vector(data) -> list[float]:
        # {"results": [{"embedding"|"vector"|"values": [...]}, ...]}
        if isinstance(data, dict):
            results = data.get("results")
            if isinstance(results, list) and results and isinstance(results[0], dict):
                first = results[0]
                for key in ("embedding", "vector", "values"):
                    if key in first:
                        return first[key]
            if "embedding" in data:
                return data["embedding"]
            if data.get("embeddings"):
                return data["embeddings"][0]
        if isinstance(data, list) and data:
            if isinstance(data[0], list):
                return data[0]
            if isinstance(data[0], (int, float)):
                return data
        raise RuntimeError(
            f"Unexpected query embedding response format from watsonx.ai: {type(data)} keys={list(data.keys()) if isinstance(data, dict) else 'n/a'}"
        )

    def embed(self, text: str) -> EmbeddingResult:
        params = {
            EmbedParams.TRUNCATE_INPUT_TOKENS: 512,
            EmbedParams.RETURN_OPTIONS: {"input_text": False},
        }
        result = self.client.generate(inputs=[text], params=params)
        data = result.get_result() if hasattr(result, "get_result") else result
        vector = self._extract_vector(data)
        token_count = 0
        if isinstance(data, dict):
            token_count = int(data.get("input_token_count") or 0)
        return EmbeddingResult(vector=vector, token_count=token_count)
