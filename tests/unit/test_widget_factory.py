"""Tests for the Streamlit widget mapping, with Streamlit mocked out."""

from unittest.mock import MagicMock, patch

import pytest

from rule_simulator.resolver.controls import NumberControl, PercentSliderControl
from rule_simulator.runtime.view_model import QuestionView
from rule_simulator.runtime.widget_factory import WidgetFactory


def _view(control, unit=None):
    return QuestionView(
        name=control.name,
        title="Part",
        question="Part en voiture ?",
        unit=unit,
        description=None,
        control=control,
    )


@pytest.fixture
def st():
    with patch("rule_simulator.runtime.widget_factory.st", MagicMock()) as mocked:
        yield mocked


class TestPercentSlider:
    def test_in_range_value_uses_slider(self, st):
        WidgetFactory.create_widget(_view(PercentSliderControl("transport . voiture . part", value=60.0), unit="%"))
        st.slider.assert_called_once()
        assert st.slider.call_args.kwargs["value"] == 60.0
        st.number_input.assert_not_called()

    def test_unanswered_slider_starts_at_minimum(self, st):
        WidgetFactory.create_widget(_view(PercentSliderControl("transport . voiture . part"), unit="%"))
        assert st.slider.call_args.kwargs["value"] == 0.0

    @pytest.mark.parametrize("value", [150.0, -5.0])
    def test_out_of_range_value_falls_back_to_number_input(self, st, value):
        WidgetFactory.create_widget(_view(PercentSliderControl("transport . voiture . part", value=value), unit="%"))
        st.slider.assert_not_called()
        kwargs = st.number_input.call_args.kwargs
        assert kwargs["value"] == value
        assert "min_value" not in kwargs
        assert "max_value" not in kwargs


class TestNumberInput:
    def test_negative_value_is_not_bounded(self, st):
        WidgetFactory.create_widget(_view(NumberControl("transport . distance", value=-12.0), unit="km"))
        kwargs = st.number_input.call_args.kwargs
        assert kwargs["value"] == -12.0
        assert "min_value" not in kwargs

    def test_placeholder_is_formatted(self, st):
        WidgetFactory.create_widget(_view(NumberControl("transport . distance", placeholder=1500.0), unit="km"))
        assert st.number_input.call_args.kwargs["placeholder"] == "1\u00a0500"
