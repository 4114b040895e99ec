import random

from schemas.messages import DeviceInfo, DisplayIdentity

DEVICES = ["Desktop", "Mobile", "Tablet"]
ADJECTIVES = ["Swift", "Bright", "Silent", "Azure", "Rapid"]
NOUNS = ["Otter", "Falcon", "Panda", "Lynx", "Fox"]


def random_identity() -> DisplayIdentity:
    display_name = f"{random.choice(ADJECTIVES)}-{random.choice(NOUNS)}"
    device_name = f"{display_name} {random.choice(DEVICES)}"
    return DisplayIdentity(
        display_name=display_name,
        device_name=device_name,
        device=DeviceInfo(type="desktop"),
    )
