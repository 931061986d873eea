"""
Agent Services

- rendezvous - Key-value mailbox (Redis)
- chat - Bot client, notifier and chat ingress
- api - HTTP ingress
- control - Dispatcher, executor and recipes
"""
