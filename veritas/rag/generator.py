from ibm_watsonx_ai import Credentials
from ibm_watsonx_ai.foundation_models import ModelInference

from veritas.config import Settings
from veritas.models import Completion
from veritas.rag.interfaces import CompletionService


class GeneratorClient(CompletionService):
    """watsonx.ai chat completions, one inference handle per model id."""

    def __init__(self, settings: Settings):
        self.settings = settings
        if not settings.ibm_cloud_api_key or not settings.watsonx_project_id:
            raise ValueError(
                "Missing watsonx.ai configuration. Please set IBM_CLOUD_API_KEY and WATSONX_PROJECT_ID."
            )
        self.credentials = Credentials(
            api_key=settings.ibm_cloud_api_key,
            url=f"https://{settings.watsonx_region}.ml.cloud.ibm.com",
        )
        self._models: dict[str, ModelInference] = {}

    def _model(self, model_id: str) -> ModelInference:
        if model_id not in self._models:
            self._models[model_id] = ModelInference(
                model_id=model_id,
                project_id=self.settings.watsonx_project_id,
                credentials=self.credentials,
            )
        return self._models[model_id]

    @staticmethod
    def _usage_value(usage: dict, key: str) -> int | None:
        value = usage.get(key)
        return int(value) if value is not None else None

    def complete(
        self,
        model_id: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        params = {"temperature": float(temperature), "max_tokens": int(max_tokens)}
        response = self._model(model_id).chat(messages=messages, params=params)
        data = response.get_result() if hasattr(response, "get_result") else response

        if not isinstance(data, dict):
            raise RuntimeError(
                f"Unexpected chat response format from watsonx.ai: {type(data)}"
            )
        choices = data.get("choices") or []
        if not choices:
            raise RuntimeError(
                f"watsonx.ai returned no choices for {model_id}: keys={list(data.keys())}"
            )
        message = choices[0].get("message") or {}
        content = message.get("content")
        if content is None:
            raise RuntimeError(f"watsonx.ai returned an empty message for {model_id}")

        usage = data.get("usage") or {}
        return Completion(
            content=content,
            prompt_tokens=self._usage_value(usage, "prompt_tokens"),
            completion_tokens=self._usage_value(usage, "completion_tokens"),
            total_tokens=self._usage_value(usage, "total_tokens"),
        )
