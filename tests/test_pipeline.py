import asyncio

import pytest

from tests.conftest import FakeEmbeddingService, make_comments, make_generator, random_vectors
from voxcluster import AnalysisCancelledError, CommentAnalyzer, EmptyInputError, analyze_comments
from voxcluster.errors import TerminalEmbeddingError


def fifty_comment_service(failing_indices=range(10, 20)):
    texts = [f"comment {i}" for i in range(50)]
    vectors = dict(zip(texts, random_vectors(50, dim=6, seed=21)))
    failing = {texts[i] for i in failing_indices}
    service = FakeEmbeddingService(
        vectors=vectors,
        fail_when=lambda batch, _: TerminalEmbeddingError("quota") if failing & set(batch) else None,
    )
    return texts, service


def test_partial_failure_clusters_remaining_comments_with_original_indices():
    texts, service = fifty_comment_service()
    generator = make_generator(service, batch_size=10)

    analysis = asyncio.run(analyze_comments(make_comments(texts), generator))

    assert len(analysis.comments) == 50
    assert analysis.valid_indices == tuple(list(range(10)) + list(range(20, 50)))
    assert analysis.degraded_count == 10
    for result in (analysis.clusters.fine, analysis.clusters.coarse):
        assert result.n_items == 40
        original = sorted(i for c in result.clusters for i in analysis.original_indices(c))
        assert original == list(analysis.valid_indices)


def test_cluster_texts_trace_back_to_comments():
    texts, service = fifty_comment_service()
    generator = make_generator(service, batch_size=10)

    analysis = asyncio.run(analyze_comments(make_comments(texts), generator))

    for cluster in analysis.clusters.coarse.clusters:
        for index, text in zip(analysis.original_indices(cluster), analysis.texts(cluster)):
            assert texts[index] == text
            assert index not in range(10, 20)


def test_no_valid_embeddings_is_empty_input():
    texts, service = fifty_comment_service(failing_indices=range(50))
    generator = make_generator(service, batch_size=10)

    with pytest.raises(EmptyInputError):
        asyncio.run(analyze_comments(make_comments(texts), generator))


def test_no_comments_is_empty_input():
    generator = make_generator(FakeEmbeddingService())

    with pytest.raises(EmptyInputError):
        asyncio.run(analyze_comments([], generator))


def test_cancelled_analysis_never_clusters(monkeypatch):
    def fail_if_called(*args, **kwargs):
        raise AssertionError("clustering must not start after cancellation")

    monkeypatch.setattr("voxcluster.pipeline.get_multi_level_clusters", fail_if_called)
    cancel_event = asyncio.Event()
    cancel_event.set()
    generator = make_generator(FakeEmbeddingService())

    with pytest.raises(AnalysisCancelledError):
        asyncio.run(
            analyze_comments(make_comments(["a", "b"]), generator, cancel_event=cancel_event)
        )


def test_analyzer_single_comment():
    analyzer = CommentAnalyzer(make_generator(FakeEmbeddingService()))

    analysis = asyncio.run(analyzer.run(make_comments(["only one"])))

    assert len(analysis.clusters.fine) == 1
    assert len(analysis.clusters.coarse) == 1
    assert analysis.clusters.fine.clusters[0].confidence == 1.0


def test_mixed_vector_lengths_keep_the_most_common_one():
    texts = [f"comment {i}" for i in range(8)]
    vectors = dict(zip(texts, random_vectors(8, dim=4, seed=5)))
    # The last batch comes back from a different model
    vectors["comment 6"] = [1.0, 0.5, 0.2]
    vectors["comment 7"] = [0.3, 1.0, 0.1]
    generator = make_generator(FakeEmbeddingService(vectors=vectors), batch_size=2)

    analysis = asyncio.run(analyze_comments(make_comments(texts), generator))

    assert analysis.valid_indices == tuple(range(6))
    assert analysis.degraded_count == 2
    assert analysis.clusters.fine.n_items == 6
