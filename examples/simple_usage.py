#!/usr/bin/env python3
"""
Simple example of using the Solana Actions SDK.
"""
import os
import asyncio
import logging
import urllib.parse

from solana_actions_sdk import (
    ActionChainController, ActionsClient, ActionsError, RuleTable, SolanaRpcClient,
    TransactionTrustClassifier, UserRejectedError, unwrap_action_url,
)


class PreviewSigner:
    """Signer that never signs; enough to inspect what an Action asks for"""

    def sign(self, transaction, account):
        raise UserRejectedError("preview only")


async def preview(url, account):
    """
    Demonstrate basic usage of the SDK.

    This example shows how to:
    1. Resolve a website URL through the site's actions.json
    2. Fetch and validate the Action
    3. Ask for a transaction and classify it before any wallet sees it
    """
    client = ActionsClient()
    rpc = SolanaRpcClient()
    classifier = TransactionTrustClassifier(rpc)

    action_url = unwrap_action_url(url)
    rules = RuleTable.from_json(client.get_actions_json(action_url))
    route = rules.resolve(action_url)
    if route is not None:
        action_url = urllib.parse.urljoin(action_url, route.url)

    problems = client.check_cors(action_url)
    if problems:
        print(f"Missing CORS headers: {', '.join(problems)}")

    chain = await ActionChainController.start(
        action_url, account, client, classifier, PreviewSigner(), rpc
    )
    action = chain.current_action
    print(f"{action.title}: {action.description}")
    for index, linked in enumerate(action.linked_actions):
        names = ", ".join(p.name for p in linked.parameters) or "no input"
        print(f"  [{index}] {linked.label} ({names})")

    first = action.linked_actions[0]
    if first.parameters:
        return
    verdict = await chain.select(first)
    print(f"Transaction is {verdict.state.value}; fee payer rewritten: {verdict.fee_payer_override}")
    chain.cancel()


def main():
    logging.basicConfig(level=logging.INFO)
    url = os.environ.get("ACTION_URL")
    account = os.environ.get("SOLANA_ACCOUNT")
    if not url or not account:
        print("ERROR: ACTION_URL and SOLANA_ACCOUNT environment variables are required")
        return

    try:
        asyncio.run(preview(url, account))
    except ActionsError as e:
        print(f"Error previewing action: {str(e)}")


if __name__ == "__main__":
    main()
