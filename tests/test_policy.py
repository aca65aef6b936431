import itertools

import pytest

from device import DeviceClass
from policy import PolicyConfig, evaluate, render_message

from fakes import make_record


def only(decisions):
    assert len(decisions) == 1
    return decisions[0]


def test_guest_network_device_is_notified():
    roster = [make_record("aa:bb", network_label="Guest")]
    decision = only(evaluate(roster, set(), PolicyConfig(always_notify_guest="Guest")))

    assert decision.should_notify
    assert decision.is_new_device
    assert decision.guest_match
    assert "aa:bb" in decision.message


def test_known_device_is_not_notified():
    decision = only(evaluate([make_record("aa:bb")], {"aa:bb"}, PolicyConfig()))

    assert not decision.should_notify
    assert not decision.is_new_device
    assert decision.message is None


def test_known_device_on_guest_network_is_notified_but_not_new():
    roster = [make_record("aa:bb", network_label="Home Guest WiFi")]
    decision = only(evaluate(roster, {"aa:bb"}, PolicyConfig(always_notify_guest="Guest")))

    assert decision.should_notify
    assert not decision.is_new_device


def test_guest_match_is_case_sensitive():
    roster = [make_record("aa:bb", network_label="guest")]
    assert not only(evaluate(roster, {"aa:bb"}, PolicyConfig(always_notify_guest="Guest"))).should_notify


def test_missing_network_label_matches_as_na():
    roster = [make_record("aa:bb")]
    assert only(evaluate(roster, {"aa:bb"}, PolicyConfig(always_notify_guest="N/A"))).should_notify
    assert not only(evaluate(roster, {"aa:bb"}, PolicyConfig(always_notify_guest="Guest"))).should_notify


def test_always_notify_covers_known_devices():
    roster = [make_record("aa:bb"), make_record("cc:dd")]
    decisions = evaluate(roster, {"aa:bb", "cc:dd"}, PolicyConfig(always_notify=True))
    assert [d.should_notify for d in decisions] == [True, True]


def test_decisions_follow_roster_order():
    roster = [make_record("cc:dd"), make_record("aa:bb"), make_record("ee:ff")]
    decisions = evaluate(roster, {"aa:bb"}, PolicyConfig())
    assert [d.record.identifier for d in decisions] == ["cc:dd", "aa:bb", "ee:ff"]
    assert [d.should_notify for d in decisions] == [True, False, True]


def test_records_without_identifier_are_skipped():
    assert evaluate([make_record("")], set(), PolicyConfig()) == []


def test_evaluate_does_not_mutate_known_set():
    known = {"aa:bb"}
    evaluate([make_record("cc:dd")], known, PolicyConfig())
    assert known == {"aa:bb"}


@pytest.mark.parametrize("always_notify,known,guest", itertools.product(
    [False, True], [set(), {"aa:bb"}], ["", "Guest", "Other"]))
def test_notified_iff_always_new_or_guest(always_notify, known, guest):
    record = make_record("aa:bb", network_label="Guest")
    policy = PolicyConfig(always_notify=always_notify, always_notify_guest=guest)
    expected = always_notify or "aa:bb" not in known or (guest != "" and guest in "Guest")

    assert only(evaluate([record], known, policy)).should_notify == expected


def test_teleport_device_gets_short_message(teleport_record):
    decision = only(evaluate([teleport_record], set(), PolicyConfig(teleport_mode=True)))

    assert decision.message == (
        "Teleport device seen on network:\n"
        "Name: Phone\n"
        "IP Address: 192.168.2.3\n"
        "ID: 6523f0a1b2\n"
    )


def test_teleport_device_without_extended_mode_gets_full_message(teleport_record):
    message = render_message(teleport_record, PolicyConfig(teleport_mode=False))
    assert message.startswith("Device seen on network:\n")


def test_full_message_defaults():
    record = make_record("aa:bb:cc:dd:ee:ff")
    message = render_message(record, PolicyConfig())

    assert message == (
        "Device seen on network:\n"
        "Device Name: Unknown\n"
        "IP Address: `Unassigned`\n"
        "Hostname: N/A\n"
        "MAC Address: `aa:bb:cc:dd:ee:ff`\n"
        "Connection Type: Wireless\n"
        "Network: N/A"
    )


def test_full_message_with_all_fields():
    record = make_record("aa:bb:cc:dd:ee:ff", display_name="NAS", ip_address="192.168.1.20",
                         hostname="nas.local", is_wired=True, network_label="LAN",
                         device_class=DeviceClass.STANDARD)
    lines = render_message(record, PolicyConfig(teleport_mode=True)).split("\n")

    assert lines == [
        "Device seen on network:",
        "Device Name: NAS",
        "IP Address: `192.168.1.20`",
        "Hostname: nas.local",
        "MAC Address: `aa:bb:cc:dd:ee:ff`",
        "Connection Type: Wired",
        "Network: LAN",
    ]


def test_policy_is_immutable():
    policy = PolicyConfig()
    with pytest.raises(AttributeError):
        policy.always_notify = True
