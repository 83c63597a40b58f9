"""Minimal demonstration of a blocking Replicate chat call."""

from replicate_core import ChatMessage, ChatReplicateConfig, ReplicateClient

if __name__ == "__main__":
    client = ReplicateClient(ChatReplicateConfig.new(version="placeholder"))
    version = client.latest_version()
    client = ReplicateClient(ChatReplicateConfig.new(model=client.config.model, version=version))
    result = client.call([
        ChatMessage.user("Return the response 'Colorful Threads'."),
    ])
    if result.ok:
        print("Assistant:", result.message.content)
    else:
        print("Error:", result.error_message)
