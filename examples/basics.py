import asyncio

from resynx import StreamController, create_resource, observable

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Defining an observable")
print("-" * 100)
print()

# Observables hold a single value and call their listeners whenever it is replaced.
current_name = observable("Alice")

log_on_change = lambda name: print(f"Name changed to: {name}")

subscription = current_name.subscribe(log_on_change)
current_name.set("Smith")  # This will call the listener

subscription.cancel()
current_name.set("Bob")  # This will not


def render(state):
    return state.maybe_on(
        or_else=lambda: "idle",
        ready=lambda value, refreshing: f"{value} (refreshing)" if refreshing else f"{value}",
        error=lambda error, stack_trace: f"failed: {error}",
        loading=lambda: "loading...",
    )


async def main():
    # --------------------------------------------------------------------------------------------

    print()
    print("=" * 100)
    print("A resource driven by a fetcher and a source")
    print("-" * 100)
    print()

    user_id = observable(1)
    users = {1: "Ada Lovelace", 2: "Grace Hopper"}

    async def fetch_user():
        await asyncio.sleep(0.01)
        return users[user_id.value]  # KeyError for unknown ids ends up in the error state

    user = create_resource(fetcher=fetch_user, source=user_id)
    user.add_listener(lambda state: print(f"user: {render(state)}"))

    await user.resolve()

    # Changing the source refetches; the old value stays visible while refreshing.
    user_id.set(2)
    await asyncio.sleep(0.05)

    user_id.set(3)
    await asyncio.sleep(0.05)

    user.dispose()
    user_id.set(1)  # Disposed resources no longer refetch

    # --------------------------------------------------------------------------------------------

    print()
    print("=" * 100)
    print("A resource driven by a stream")
    print("-" * 100)
    print()

    ticks = StreamController()
    clock = create_resource(stream=ticks.stream)
    clock.add_listener(lambda state: print(f"clock: {render(state)}"))
    await clock.resolve()

    for n in range(3):
        ticks.add(n)
        await asyncio.sleep(0)
    ticks.add_error(RuntimeError("clock skew"))
    await asyncio.sleep(0)

    clock.dispose()
    ticks.add(99)  # Never delivered
    await asyncio.sleep(0)


asyncio.run(main())
