from textgraph.models.embedding_backend import EmbeddingBackendClient, compute_attention_with_fallback
from textgraph.utils.config import BackendConfig, PipelineConfig


def main():
    config = PipelineConfig(backend=BackendConfig(use_demo=True))
    tokens = ["graph", "attention", "mechanisms"]
    with EmbeddingBackendClient(config=config.backend) as client:
        cosine = client.create_attention_matrix(tokens, task_type="query")
        print("cosine attention:", cosine.attention_matrix)
        gat = compute_attention_with_fallback("", " ".join(tokens), "educational", config, client=client)
        print("educational GAT on backend vectors:", gat.attention_matrix)
        print(client.status())


if __name__ == "__main__":
    main()
