"""Selection state machine and local voice controls"""

from voxen.models import Channel, ChannelType, Server
from voxen.selection import SelectionMode, SelectionState, VoiceState


def server(sid="srv_1"):
    return Server(id=sid, name=f"Server {sid}", owner_id="user_alice")


def channel(cid, sid="srv_1", kind=ChannelType.TEXT, position=0):
    return Channel(id=cid, server_id=sid, name=cid, type=kind, position=position)


class TestServerMode:
    def test_starts_empty(self):
        state = SelectionState()
        assert state.mode == SelectionMode.NONE
        assert state.server_id is None
        assert state.channel_id is None

    def test_first_channel_is_selected_after_load(self):
        state = SelectionState()
        state.select_server(server())

        picked = state.channels_loaded([channel("general"), channel("voice", kind=ChannelType.VOICE, position=1)])

        assert picked.id == "general"
        assert state.channel_id == "general"
        assert state.is_text_channel

    def test_existing_channel_is_kept_on_reload(self):
        state = SelectionState()
        state.select_server(server())
        state.channels_loaded([channel("general"), channel("random", position=1)])
        state.select_channel(channel("random", position=1))

        assert state.channels_loaded([channel("general"), channel("random", position=1)]).id == "random"

    def test_empty_server_has_no_channel(self):
        state = SelectionState()
        state.select_server(server())
        assert state.channels_loaded([]) is None
        assert state.channel is None

    def test_switching_server_drops_foreign_channel(self):
        state = SelectionState()
        state.select_server(server("srv_1"))
        state.channels_loaded([channel("general")])

        state.select_server(server("srv_2"))

        assert state.server_id == "srv_2"
        assert state.channel is None

    def test_channel_of_another_server_is_ignored(self):
        state = SelectionState()
        state.select_server(server("srv_1"))
        state.channels_loaded([channel("general")])

        assert not state.select_channel(channel("elsewhere", sid="srv_2"))
        assert state.channel_id == "general"

    def test_channel_without_server_is_ignored(self):
        state = SelectionState()
        assert not state.select_channel(channel("general"))
        assert state.mode == SelectionMode.NONE

    def test_voice_channel_is_not_text(self):
        state = SelectionState()
        state.select_server(server())
        state.select_channel(channel("lounge", kind=ChannelType.VOICE))
        assert not state.is_text_channel


class TestDirectMessageMode:
    def test_entering_dms_clears_server(self):
        state = SelectionState()
        state.select_server(server())
        state.channels_loaded([channel("general")])

        state.select_dms()

        assert state.mode == SelectionMode.DM
        assert state.server is None
        assert state.channel is None

    def test_select_dm_only_in_dm_mode(self):
        state = SelectionState()
        assert not state.select_dm("user_bob", "Bob")

        state.select_dms()
        assert state.select_dm("user_bob", "Bob")
        assert state.dm_friend_id == "user_bob"
        assert state.dm_friend_name == "Bob"

    def test_server_selection_leaves_dm_thread(self):
        state = SelectionState()
        state.select_dms()
        state.select_dm("user_bob", "Bob")

        state.select_server(server())

        assert state.dm_friend_id is None
        assert state.mode == SelectionMode.SERVER

    def test_clear_resets_everything(self):
        state = SelectionState()
        state.select_dms()
        state.select_dm("user_bob", "Bob")
        state.open_dialog("profile")

        state.clear()

        assert state.mode == SelectionMode.NONE
        assert state.dm_friend_id is None
        assert state.dialogs == set()


class TestUiFlags:
    def test_sections_toggle_independently(self):
        state = SelectionState()
        state.toggle_section(ChannelType.TEXT)
        assert not state.text_channels_open
        assert state.voice_channels_open
        state.toggle_section(ChannelType.VOICE)
        state.toggle_section(ChannelType.TEXT)
        assert state.text_channels_open
        assert not state.voice_channels_open

    def test_dialogs(self):
        state = SelectionState()
        state.open_dialog("create_server")
        state.open_dialog("create_server")
        state.close_dialog("create_server")
        state.close_dialog("never_opened")
        assert state.dialogs == set()

    def test_subscribers_are_notified(self):
        state = SelectionState()
        seen = []
        unsubscribe = state.subscribe(lambda s: seen.append(s.mode))

        state.select_server(server())
        state.select_dms()
        unsubscribe()
        state.clear()

        assert seen == [SelectionMode.SERVER, SelectionMode.DM]


class TestVoiceState:
    def test_mute_toggles(self):
        voice = VoiceState()
        voice.toggle_mute()
        assert voice.muted
        voice.toggle_mute()
        assert not voice.muted

    def test_deafen_mutes_and_restores(self):
        voice = VoiceState()
        voice.toggle_deafen()
        assert voice.deafened and voice.muted

        voice.toggle_deafen()
        assert not voice.deafened
        assert not voice.muted

    def test_deafen_remembers_prior_mute(self):
        voice = VoiceState()
        voice.toggle_mute()
        voice.toggle_deafen()
        voice.toggle_deafen()
        assert voice.muted

    def test_unmute_while_deafened_undeafens(self):
        voice = VoiceState()
        voice.toggle_deafen()
        voice.toggle_mute()
        assert not voice.deafened
        assert not voice.muted

    def test_volume_is_clamped(self):
        voice = VoiceState()
        voice.set_volume(150)
        assert voice.volume == 100
        voice.set_volume(-5)
        assert voice.volume == 0
        voice.set_volume(42.6)
        assert voice.volume == 43
