#!/usr/bin/env python3
"""
CLI para enviar comandos de control a RecycleCam
=================================================

Uso:
    python -m recyclecam.control.cli start
    python -m recyclecam.control.cli stop
    python -m recyclecam.control.cli status --broker 192.168.1.100
    python -m recyclecam.control.cli shutdown
"""
import sys
import json
import argparse

import paho.mqtt.client as mqtt

COMMANDS = ["start", "stop", "status", "metrics", "stabilization_stats", "shutdown"]


def send_command(broker: str, port: int, topic: str, command: str) -> bool:
    """Publica {"command": command} con QoS 1 y espera el ack del broker."""
    client = mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id="recyclecam_control_cli",
        protocol=mqtt.MQTTv5,
    )

    print(f"🔌 Connecting to {broker}:{port}...")
    try:
        client.connect(broker, port, keepalive=60)
    except Exception as e:
        print(f"❌ Connection error: {e}")
        return False

    client.loop_start()
    try:
        print(f"📤 Sending command: {command}")
        result = client.publish(topic, json.dumps({"command": command}), qos=1)
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            print(f"❌ Error sending command: {result.rc}")
            return False

        result.wait_for_publish(timeout=5.0)
        print("✅ Command sent")
        return True
    finally:
        client.loop_stop()
        client.disconnect()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Control a running RecycleCam session via MQTT"
    )
    parser.add_argument(
        "command",
        choices=COMMANDS,
        help="Command to send"
    )
    parser.add_argument(
        "--broker",
        default="localhost",
        help="MQTT broker host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=1883,
        help="MQTT broker port (default: 1883)"
    )
    parser.add_argument(
        "--topic",
        default="recyclecam/control/commands",
        help="Command topic (default: recyclecam/control/commands)"
    )
    return parser


def main():
    args = build_parser().parse_args()
    success = send_command(args.broker, args.port, args.topic, args.command)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
