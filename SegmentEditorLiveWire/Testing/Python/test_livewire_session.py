"""Tests for LiveWireSession and ROI - anchor-by-anchor tracing."""

import numpy as np
import pytest
from conftest import make_scissors
from SegmentEditorLiveWireLib import ROI, LiveWireSession, Point
from test_fixtures.synthetic_image import create_uniform_image


def _adjacent(a, b):
    return max(abs(a.x - b.x), abs(a.y - b.y)) == 1


@pytest.fixture
def session():
    """Session on a flat 16x16 image, where untrained paths are straight."""
    scissors = make_scissors(create_uniform_image(size=(16, 16)), 16, 16)
    return LiveWireSession(scissors)


class TestROI:
    def test_empty(self):
        roi = ROI()
        assert len(roi) == 0
        assert roi.to_array().shape == (0, 2)

    def test_add_and_get(self):
        roi = ROI([Point(1, 2)])
        roi.add_point(Point(2, 2))
        roi.add_points([Point(3, 3), Point(4, 3)])

        assert len(roi) == 4
        assert roi.get_point(0) == Point(1, 2)
        assert roi.get_point(-1) == Point(4, 3)
        assert list(roi) == [Point(1, 2), Point(2, 2), Point(3, 3), Point(4, 3)]

    def test_to_array(self):
        roi = ROI([Point(1, 2), Point(5, 7)])
        array = roi.to_array()

        assert array.dtype == np.int64
        np.testing.assert_array_equal(array, [[1, 2], [5, 7]])


class TestLiveWireSession:
    """Tests for starting, committing and closing an outline."""

    def test_start(self, session):
        assert not session.is_started
        session.start(Point(4, 4))

        assert session.is_started
        assert session.anchors == [Point(4, 4)]
        assert session.last_anchor == Point(4, 4)
        assert list(session.roi) == [Point(4, 4)]
        assert session.scissors.seed == Point(4, 4)

    def test_preview(self, session):
        assert session.preview(Point(5, 5)) == []

        session.start(Point(4, 4))
        assert session.preview(Point(8, 4)) == []

        assert session.step()
        assert session.preview(Point(8, 4)) == [Point(x, 4) for x in range(4, 9)]

    def test_commit_straight_segment(self, session):
        session.start(Point(4, 4))
        path = session.commit(Point(11, 4))

        expected = [Point(x, 4) for x in range(4, 12)]
        assert path == expected
        assert list(session.roi) == expected
        assert session.anchors == [Point(4, 4), Point(11, 4)]
        assert session.scissors.seed == Point(11, 4)

    def test_commit_trains(self, session):
        session.start(Point(4, 4))
        session.commit(Point(11, 4))
        assert session.scissors.trained

    def test_commit_without_training(self):
        scissors = make_scissors(create_uniform_image(size=(16, 16)), 16, 16)
        session = LiveWireSession(scissors, train_on_commit=False)
        session.start(Point(4, 4))
        session.commit(Point(11, 4))
        assert not scissors.trained

    def test_commit_resumes_paused_search(self, session):
        session.start(Point(4, 4))
        session.scissors.set_working(False)

        path = session.commit(Point(6, 6))
        assert path[-1] == Point(6, 6)

    def test_close_outline(self, session):
        session.start(Point(4, 4))
        session.commit(Point(11, 4))
        session.commit(Point(11, 11))
        roi = session.close()

        points = list(roi)
        assert session.closed
        assert not session.scissors.is_working
        assert points[0] == Point(4, 4)
        assert points[-1] != Point(4, 4)
        for anchor in session.anchors:
            assert anchor in points
        for a, b in zip(points, points[1:]):
            assert _adjacent(a, b)
        # The outline wraps back to its start
        assert _adjacent(points[-1], points[0])

    def test_close_is_idempotent(self, session):
        session.start(Point(4, 4))
        session.commit(Point(11, 4))
        first = session.close()
        length = len(first)

        assert session.close() is first
        assert len(first) == length

    def test_close_single_anchor(self, session):
        session.start(Point(4, 4))
        roi = session.close()
        assert list(roi) == [Point(4, 4)]
        assert session.closed

    def test_commit_after_close(self, session):
        session.start(Point(4, 4))
        session.close()
        with pytest.raises(RuntimeError, match="closed"):
            session.commit(Point(6, 6))

    def test_commit_outside_image_leaves_session_intact(self, session):
        session.start(Point(1, 1))
        with pytest.raises(IndexError):
            session.commit(Point(20, 20))

        assert session.anchors == [Point(1, 1)]
        assert list(session.roi) == [Point(1, 1)]
        assert session.scissors.seed == Point(1, 1)
        assert session.scissors.visited_count == 0

        # Still usable afterwards
        path = session.commit(Point(4, 1))
        assert path[-1] == Point(4, 1)

    def test_start_outside_image_leaves_session_intact(self, session):
        with pytest.raises(IndexError):
            session.start(Point(-1, 3))
        assert not session.is_started
        assert len(session.roi) == 0

    def test_not_started(self, session):
        with pytest.raises(RuntimeError, match="not started"):
            session.commit(Point(1, 1))
        with pytest.raises(RuntimeError, match="not started"):
            session.close()

    def test_restart_clears_outline(self, session):
        session.start(Point(4, 4))
        session.commit(Point(11, 4))
        session.close()

        session.start(Point(2, 9))
        assert not session.closed
        assert list(session.roi) == [Point(2, 9)]
        assert session.anchors == [Point(2, 9)]

    def test_cancel(self, session):
        session.start(Point(4, 4))
        session.commit(Point(8, 4))
        session.cancel()

        assert not session.is_started
        assert len(session.roi) == 0
        assert not session.scissors.is_working
        assert session.step() is None
