from slack_feedback.widget import ClickEvent


def test_widget_starts_closed_without_listener(widget, clicks):
    assert widget.state.is_open is False
    assert clicks.listener_count() == 0


def test_toggle_registers_listener_only_while_open(widget, clicks):
    for _ in range(5):
        widget.toggle()
        assert widget.state.is_open is True
        assert clicks.listener_count() == 1

        widget.toggle()
        assert widget.state.is_open is False
        assert clicks.listener_count() == 0


def test_repeated_activate_does_not_double_register(widget, clicks):
    widget.activate()
    widget.activate()
    widget.activate()

    assert clicks.listener_count() == 1

    widget.close()
    assert clicks.listener_count() == 0


def test_close_when_already_closed_is_harmless(widget, clicks):
    widget.close()
    widget.close()

    assert widget.state.is_open is False
    assert clicks.listener_count() == 0


def test_click_outside_closes_widget(widget, clicks):
    widget.toggle()

    clicks.dispatch(ClickEvent(target="other-button"))

    assert widget.state.is_open is False
    assert clicks.listener_count() == 0


def test_click_inside_keeps_widget_open(widget, clicks):
    widget.toggle()

    clicks.dispatch(ClickEvent(target="widget:submit"))

    assert widget.state.is_open is True
    assert clicks.listener_count() == 1


def test_handled_click_is_ignored(widget, clicks):
    widget.toggle()

    clicks.dispatch(ClickEvent(target="other-button", default_prevented=True))

    assert widget.state.is_open is True


def test_listener_registered_in_capture_phase(widget, clicks):
    seen = []

    def bubble_listener(event):
        seen.append(event.target)
        event.prevent_default()

    clicks.add_listener(bubble_listener)
    widget.toggle()

    # The widget's capture listener runs before the bubble listener marks the event handled
    clicks.dispatch(ClickEvent(target="elsewhere"))

    assert seen == ["elsewhere"]
    assert widget.state.is_open is False


def test_unmount_releases_listener(widget, clicks):
    widget.toggle()

    widget.unmount()

    assert clicks.listener_count() == 0
    assert widget.destroyed is True
    widget.toggle()
    assert widget.state.is_open is False


def test_disabled_widget_ignores_toggle(make_widget, clicks):
    widget = make_widget(disabled=True)

    widget.toggle()

    assert widget.state.is_open is False
    assert clicks.listener_count() == 0
    assert widget.render() is None


def test_change_listeners_are_notified(widget):
    seen = []
    unsubscribe = widget.subscribe(lambda state: seen.append(state.is_open))

    widget.toggle()
    widget.toggle()
    unsubscribe()
    widget.toggle()

    assert seen == [True, False]
